from __future__ import annotations

import logging

from relay.core.config import RelayConfig
from relay.dispatch.disposition import Decision, Disposition, DispositionEngine
from relay.dispatch.outcomes import Rejected, TransportError, is_success
from relay.integrations.http_sender import HttpMessageSender
from relay.intake.actions import MessageActions, apply_disposition
from relay.intake.message import InboundMessage

log = logging.getLogger("intake")


def process_message(
    message: InboundMessage,
    *,
    engine: DispositionEngine,
    sender: HttpMessageSender,
    config: RelayConfig,
    actions: MessageActions,
) -> Decision:
    """Relay one delivery and apply exactly one disposition to it.

    Order is fixed: HTTP call -> classification -> (optional) circuit break ->
    disposition. Anything unexpected before the disposition is applied turns
    into RETRY_LATER. Exceptions raised by ``actions`` (queue control flow)
    propagate to the runtime.
    """

    log.info(
        "Message ID: %s, Content-Type: %s, size: %s bytes, delivery: %s",
        message.message_id,
        message.content_type,
        message.size,
        message.delivery_count,
    )

    try:
        outcome = sender.send_message(
            config.http_endpoint,
            message.body,
            message.message_id,
            message.content_type,
        )
        decision = engine.resolve(outcome, message.message_id)
    except Exception as e:
        log.exception("Error processing message %s", message.message_id)
        decision = Decision(
            disposition=Disposition.RETRY_LATER,
            outcome=TransportError(reason=f"{type(e).__name__}: {e}"),
            reason=f"message {message.message_id or '-'} processing error: {type(e).__name__}",
        )
    else:
        _log_decision(message, decision)

    apply_disposition(actions, decision.disposition, decision.reason)
    return decision


def _log_decision(message: InboundMessage, decision: Decision) -> None:
    outcome = decision.outcome
    mid = message.message_id

    if is_success(outcome):
        log.info("Successfully forwarded message %s to HTTP endpoint. Status: %s", mid, outcome.status_code)
    elif isinstance(outcome, TransportError):
        log.error("Exception occurred while forwarding message %s to HTTP endpoint: %s", mid, outcome.reason)
    elif decision.disposition is Disposition.DEAD_LETTER and isinstance(outcome, Rejected):
        log.warning("Message %s rejected with status %s. Dead-lettering message.", mid, outcome.status_code)
    else:
        log.warning("Message %s failed with status %s. Abandoning message.", mid, getattr(outcome, "status_code", None))

    if decision.circuit_break is not None:
        req = decision.circuit_break
        if decision.notified:
            log.warning(
                "Circuit break requested: disable %s/%s for %s min",
                req.function_app_name,
                req.function_name,
                req.disable_period_minutes,
            )
        else:
            log.error(
                "Circuit break request for %s/%s did not land; retrying message %s anyway",
                req.function_app_name,
                req.function_name,
                mid,
            )
