from __future__ import annotations

import base64
from dataclasses import dataclass

DEFAULT_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class InboundMessage:
    message_id: str | None
    content_type: str
    body: str | bytes
    delivery_count: int = 1

    @classmethod
    def from_delivery(
        cls,
        *,
        body: str | bytes | None,
        message_id: str | None = None,
        content_type: str | None = None,
        delivery_count: int = 1,
    ) -> InboundMessage:
        # Default only when absent; a present-but-odd content type is forwarded as-is.
        return cls(
            message_id=message_id or None,
            content_type=DEFAULT_CONTENT_TYPE if content_type is None else content_type,
            body=body if body is not None else "",
            delivery_count=max(int(delivery_count or 1), 1),
        )

    @property
    def size(self) -> int:
        if isinstance(self.body, bytes):
            return len(self.body)
        return len(self.body.encode("utf-8"))


BODY_ENCODING_BASE64 = "base64"


def encode_body(raw: bytes) -> str:
    """Make a raw body safe for a JSON task payload without losing bytes."""

    return base64.b64encode(raw).decode("ascii")


def decode_body(body: str | bytes | None, encoding: str | None) -> str | bytes | None:
    if encoding is None:
        return body
    if encoding != BODY_ENCODING_BASE64:
        raise ValueError(f"unsupported body encoding: {encoding!r}")
    return base64.b64decode(body or "", validate=True)
