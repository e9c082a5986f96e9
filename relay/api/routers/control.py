from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from relay.api.deps import get_control_queue, get_dead_letters
from relay.integrations.control_queue import ControlQueueNotifier
from relay.intake.actions import RedisDeadLetterStore

router = APIRouter()


@router.get("/pending")
def list_pending_circuit_breaks(
    limit: int = Query(default=50, ge=1, le=500),
    queue: ControlQueueNotifier = Depends(get_control_queue),
) -> dict:
    try:
        items = queue.peek(limit)
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"control queue unavailable: {type(e).__name__}")
    return {"queue": queue.queue_name, "items": [x.to_wire() for x in items]}


@router.get("/deadletter")
def list_dead_letters(
    limit: int = Query(default=100, ge=1, le=1000),
    store: RedisDeadLetterStore = Depends(get_dead_letters),
) -> dict:
    try:
        items = store.list(limit)
    except Exception as e:
        raise HTTPException(status_code=503, detail=f"dead-letter store unavailable: {type(e).__name__}")
    return {"queue": store.queue_name, "items": items}
