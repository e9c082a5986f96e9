from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from celery.exceptions import Reject
from redis import Redis

from relay.dispatch.disposition import Disposition
from relay.intake.message import BODY_ENCODING_BASE64, InboundMessage, encode_body
from relay.util.time import now_utc

log = logging.getLogger("intake")


class MessageActions(Protocol):
    """The three queue primitives a delivery can end with."""

    def complete(self) -> None: ...

    def abandon(self) -> None: ...

    def dead_letter(self, reason: str) -> None: ...


def apply_disposition(actions: MessageActions, disposition: Disposition, reason: str = "") -> None:
    if disposition is Disposition.ACKNOWLEDGE:
        actions.complete()
    elif disposition is Disposition.DEAD_LETTER:
        actions.dead_letter(reason)
    else:
        actions.abandon()


class RedisDeadLetterStore:
    """Terminal area for messages that must not be delivered again."""

    def __init__(self, redis_client: Redis, *, queue_name: str) -> None:
        self.redis = redis_client
        self.queue_name = queue_name

    def push(self, message: InboundMessage, reason: str) -> None:
        body, body_encoding = message.body, None
        if isinstance(body, bytes):
            body, body_encoding = encode_body(body), BODY_ENCODING_BASE64
        record = {
            "message_id": message.message_id,
            "content_type": message.content_type,
            "body": body,
            "body_encoding": body_encoding,
            "delivery_count": message.delivery_count,
            "reason": reason,
            "dead_lettered_at": now_utc().isoformat(),
        }
        self.redis.rpush(self.queue_name, json.dumps(record, ensure_ascii=False))

    def list(self, limit: int = 100) -> list[dict]:
        return [json.loads(x) for x in self.redis.lrange(self.queue_name, 0, max(limit, 1) - 1)]


class CeleryMessageActions:
    """Queue primitives over a bound Celery task running with acks_late.

    complete    -> return normally (the broker message is acked after the task)
    abandon     -> task.retry(); past the max delivery count the message is dead-lettered
    dead_letter -> record in the dead-letter store, then Reject(requeue=False)
    """

    def __init__(
        self,
        task: Any,
        message: InboundMessage,
        *,
        dead_letters: RedisDeadLetterStore,
        max_delivery_count: int,
        retry_delay_s: int,
    ) -> None:
        self.task = task
        self.message = message
        self.dead_letters = dead_letters
        self.max_delivery_count = max_delivery_count
        self.retry_delay_s = retry_delay_s

    def complete(self) -> None:
        log.debug("Message %s completed", self.message.message_id)

    def abandon(self) -> None:
        if self.message.delivery_count >= self.max_delivery_count:
            log.warning(
                "Message %s reached max delivery count (%s); dead-lettering",
                self.message.message_id,
                self.max_delivery_count,
            )
            self.dead_letter("max delivery count exceeded")
        raise self.task.retry(countdown=self.retry_delay_s)

    def dead_letter(self, reason: str) -> None:
        try:
            self.dead_letters.push(self.message, reason)
        except Exception:
            # A message that could not be parked must come back, not vanish.
            log.exception("Dead-letter store unavailable for message %s; retrying", self.message.message_id)
            raise self.task.retry(countdown=self.retry_delay_s)
        raise Reject(reason, requeue=False)
