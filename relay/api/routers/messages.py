from __future__ import annotations

from fastapi import APIRouter, Header, Request

from relay.core.config import settings
from relay.intake.message import BODY_ENCODING_BASE64, encode_body
from relay.tasks.relay_tasks import relay_message
from relay.util.ids import new_uuid

router = APIRouter()


@router.post("", status_code=202)
async def enqueue_message(
    request: Request,
    x_message_id: str | None = Header(default=None, alias="X-Message-ID"),
    content_type: str | None = Header(default=None, alias="Content-Type"),
) -> dict:
    """Put a raw body on the relay queue. The body is forwarded verbatim."""

    raw = await request.body()
    message_id = x_message_id or new_uuid()

    # Task payloads are JSON; base64 keeps non-UTF-8 bodies intact.
    res = relay_message.apply_async(
        kwargs={
            "body": encode_body(raw),
            "body_encoding": BODY_ENCODING_BASE64,
            "message_id": message_id,
            "content_type": content_type,
        },
        queue=settings.RELAY_QUEUE_NAME,
        task_id=message_id,
    )
    return {"ok": True, "message_id": message_id, "task_id": res.id}
