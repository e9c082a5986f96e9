from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from redis import Redis

from relay.core.celery_app import celery
from relay.core.config import RelayConfig, load_relay_config, settings
from relay.dispatch.disposition import DispositionEngine
from relay.integrations.control_queue import ControlQueueNotifier
from relay.integrations.http_sender import HttpMessageSender
from relay.intake.actions import CeleryMessageActions, RedisDeadLetterStore
from relay.intake.message import InboundMessage, decode_body
from relay.intake.processor import process_message

log = logging.getLogger("relay_tasks")


@dataclass(frozen=True)
class Runtime:
    config: RelayConfig
    engine: DispositionEngine
    sender: HttpMessageSender
    dead_letters: RedisDeadLetterStore


@lru_cache(maxsize=1)
def get_runtime() -> Runtime:
    """Validate configuration once per worker process and wire collaborators."""

    config = load_relay_config(settings)
    redis_client = Redis.from_url(settings.REDIS_URL, socket_connect_timeout=2, socket_timeout=2)
    notifier = ControlQueueNotifier(
        redis_client,
        queue_name=config.control_queue_name,
        resource_group=config.resource_group_name,
    )
    return Runtime(
        config=config,
        engine=DispositionEngine(config, notifier),
        sender=HttpMessageSender(timeout_s=config.http_timeout_s),
        dead_letters=RedisDeadLetterStore(redis_client, queue_name=config.dead_letter_queue_name),
    )


# Redelivery is bounded by RELAY_MAX_DELIVERY_COUNT in CeleryMessageActions, not by Celery.
@celery.task(name="relay.tasks.relay_tasks.relay_message", bind=True, acks_late=True, max_retries=None)
def relay_message(
    self,
    body: str,
    message_id: str | None = None,
    content_type: str | None = None,
    body_encoding: str | None = None,
) -> dict:
    """Forward one queued message to the HTTP endpoint.

    ``body_encoding="base64"`` marks a body carried as base64; it is decoded
    back to the original bytes before sending. Returns normally on ACKNOWLEDGE.
    RETRY_LATER and DEAD_LETTER leave through Celery's Retry / Reject
    exceptions raised by the queue actions.
    """

    message_id = message_id or self.request.id
    delivery_count = (self.request.retries or 0) + 1

    try:
        rt = get_runtime()
    except Exception:
        log.exception("Relay runtime unavailable; message %s will be redelivered", message_id)
        raise self.retry(countdown=settings.RELAY_RETRY_DELAY_S)

    try:
        raw = decode_body(body, body_encoding)
        undecodable = None
    except ValueError as e:
        raw = body
        undecodable = f"undecodable body ({body_encoding}): {e}"

    message = InboundMessage.from_delivery(
        body=raw,
        message_id=message_id,
        content_type=content_type,
        delivery_count=delivery_count,
    )
    actions = CeleryMessageActions(
        self,
        message,
        dead_letters=rt.dead_letters,
        max_delivery_count=rt.config.max_delivery_count,
        retry_delay_s=rt.config.retry_delay_s,
    )

    if undecodable:
        # Will never succeed on redelivery; park it as received.
        log.warning("Message %s has an %s. Dead-lettering message.", message_id, undecodable)
        actions.dead_letter(undecodable)

    decision = process_message(message, engine=rt.engine, sender=rt.sender, config=rt.config, actions=actions)
    return {"ok": True, "message_id": message.message_id, "disposition": decision.disposition.value}
