from __future__ import annotations

from dataclasses import dataclass
from typing import Union

# Reserved: "no HTTP response was obtained". Never a real HTTP status.
TRANSPORT_ERROR_STATUS = 0

# The message itself is bad; retrying it blindly will not help.
REJECTED_STATUSES = frozenset({400, 422})


@dataclass(frozen=True)
class Success:
    status_code: int


@dataclass(frozen=True)
class Rejected:
    status_code: int


@dataclass(frozen=True)
class ServerFailure:
    status_code: int


@dataclass(frozen=True)
class TransportError:
    reason: str | None = None
    status_code: int = TRANSPORT_ERROR_STATUS


RelayOutcome = Union[Success, Rejected, ServerFailure, TransportError]


def classify_status(status_code: int) -> RelayOutcome:
    """Map a raw status code onto a RelayOutcome.

    0 -> TransportError, 2xx -> Success, 400/422 -> Rejected, everything else
    (5xx, 429, 3xx, negative or out-of-range values) -> ServerFailure.
    """

    if status_code == TRANSPORT_ERROR_STATUS:
        return TransportError()
    if 200 <= status_code < 300:
        return Success(status_code)
    if status_code in REJECTED_STATUSES:
        return Rejected(status_code)
    return ServerFailure(status_code)


def is_success(outcome: RelayOutcome) -> bool:
    return isinstance(outcome, Success)
