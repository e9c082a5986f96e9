from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass
from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field

from relay.core.config import RelayConfig
from relay.dispatch.outcomes import REJECTED_STATUSES, Rejected, RelayOutcome, Success, TransportError

log = logging.getLogger("disposition")


class Disposition(str, enum.Enum):
    ACKNOWLEDGE = "ACKNOWLEDGE"
    RETRY_LATER = "RETRY_LATER"
    DEAD_LETTER = "DEAD_LETTER"


class CircuitBreakRequest(BaseModel):
    """Control message asking the external controller to pause the relay."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    function_app_name: str = Field(alias="FunctionAppName")
    function_name: str = Field(alias="FunctionName")
    resource_group_name: str = Field(alias="ResourceGroupName")
    disable_function: Literal[True] = Field(default=True, alias="DisableFunction")
    disable_period_minutes: int = Field(alias="DisablePeriodMinutes")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class Decision:
    disposition: Disposition
    outcome: RelayOutcome
    reason: str
    circuit_break: CircuitBreakRequest | None = None
    # None: no circuit break was requested. Otherwise the notifier's best-effort result.
    notified: bool | None = None


class Notifier(Protocol):
    def notify(self, request: CircuitBreakRequest) -> bool: ...


def decide(
    outcome: RelayOutcome,
    *,
    message_id: str | None,
    app_name: str,
    function_name: str,
    resource_group: str,
    cooldown_minutes: int,
) -> Decision:
    """Pure decision table; first match wins.

    Success                -> ACKNOWLEDGE
    TransportError         -> RETRY_LATER
    Rejected (400 / 422)   -> DEAD_LETTER
    anything else          -> RETRY_LATER + circuit break for ``cooldown_minutes``

    Never raises for a value in its domain. ``message_id`` only feeds ``reason``.
    """

    mid = message_id or "-"

    if isinstance(outcome, Success):
        return Decision(
            disposition=Disposition.ACKNOWLEDGE,
            outcome=outcome,
            reason=f"message {mid} delivered, status {outcome.status_code}",
        )

    if isinstance(outcome, TransportError):
        return Decision(
            disposition=Disposition.RETRY_LATER,
            outcome=outcome,
            reason=f"message {mid} not delivered, no response ({outcome.reason or 'transport error'})",
        )

    if isinstance(outcome, Rejected) and outcome.status_code in REJECTED_STATUSES:
        return Decision(
            disposition=Disposition.DEAD_LETTER,
            outcome=outcome,
            reason=f"message {mid} rejected by endpoint, status {outcome.status_code}",
        )

    status = getattr(outcome, "status_code", None)
    return Decision(
        disposition=Disposition.RETRY_LATER,
        outcome=outcome,
        reason=f"message {mid} failed with status {status}; endpoint considered unhealthy",
        circuit_break=CircuitBreakRequest(
            function_app_name=app_name,
            function_name=function_name,
            resource_group_name=resource_group,
            disable_period_minutes=cooldown_minutes,
        ),
    )


class DispositionEngine:
    def __init__(self, config: RelayConfig, notifier: Notifier | None = None) -> None:
        self.config = config
        self.notifier = notifier

    def decide(self, outcome: RelayOutcome, message_id: str | None) -> Decision:
        return decide(
            outcome,
            message_id=message_id,
            app_name=self.config.function_app_name,
            function_name=self.config.function_name,
            resource_group=self.config.resource_group_name,
            cooldown_minutes=self.config.cooldown_minutes,
        )

    def resolve(self, outcome: RelayOutcome, message_id: str | None) -> Decision:
        """Decide, then emit the circuit-break request (if any) before returning.

        The notification is advisory: at most one attempt, and its failure never
        changes the disposition already chosen.
        """

        decision = self.decide(outcome, message_id)
        if decision.circuit_break is None:
            return decision

        notified = False
        if self.notifier is not None:
            try:
                notified = bool(self.notifier.notify(decision.circuit_break))
            except Exception:
                log.exception("Circuit-break notification raised for message %s", message_id)
                notified = False

        return dataclasses.replace(decision, notified=notified)
