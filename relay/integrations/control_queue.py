from __future__ import annotations

import base64
import json
import logging

from redis import Redis

from relay.dispatch.disposition import CircuitBreakRequest

log = logging.getLogger("control_queue")

KNOWN_QUEUES_KEY = "relay:queues"


class ControlQueueError(RuntimeError):
    pass


def encode_message(request: CircuitBreakRequest) -> str:
    """JSON, then base64 (UTF-8), the way the controller expects it."""

    raw = json.dumps(request.to_wire(), separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_message(data: str | bytes) -> CircuitBreakRequest:
    if isinstance(data, bytes):
        data = data.decode("ascii")
    raw = base64.b64decode(data).decode("utf-8")
    return CircuitBreakRequest.model_validate(json.loads(raw))


class ControlQueueNotifier:
    """Publishes circuit-break requests on the side-channel queue (a Redis list).

    Best-effort: one publish attempt per request, failures are logged and
    reported as False, never raised.
    """

    def __init__(self, redis_client: Redis, *, queue_name: str, resource_group: str) -> None:
        self.redis = redis_client
        self.queue_name = queue_name
        self.resource_group = resource_group

    @classmethod
    def from_url(cls, url: str, *, queue_name: str, resource_group: str) -> ControlQueueNotifier:
        client = Redis.from_url(url, socket_connect_timeout=2, socket_timeout=2)
        return cls(client, queue_name=queue_name, resource_group=resource_group)

    def ensure_queue(self) -> None:
        """Create the queue if absent. Safe to call on every publish."""

        kind = self.redis.type(self.queue_name)
        if isinstance(kind, bytes):
            kind = kind.decode("ascii")
        if kind not in ("none", "list"):
            raise ControlQueueError(f"key {self.queue_name!r} exists with type {kind!r}, expected a list")
        self.redis.sadd(KNOWN_QUEUES_KEY, self.queue_name)

    def request_pause(self, app_name: str, function_name: str, cooldown_minutes: int = 5) -> bool:
        try:
            request = CircuitBreakRequest(
                function_app_name=app_name,
                function_name=function_name,
                resource_group_name=self.resource_group,
                disable_period_minutes=cooldown_minutes,
            )
        except Exception as e:
            log.error("Invalid function control message for %s/%s: %s", app_name, function_name, str(e))
            return False
        return self.notify(request)

    def notify(self, request: CircuitBreakRequest) -> bool:
        try:
            message = encode_message(request)
        except Exception as e:
            log.error("Error occurred while serializing function control message: %s", str(e))
            return False

        try:
            self.ensure_queue()
            log.info("Sending message to queue: %s", self.queue_name)
            length = self.redis.rpush(self.queue_name, message)
        except Exception as e:
            log.error("Error occurred while sending message to queue %s: %s: %s", self.queue_name, type(e).__name__, str(e))
            return False

        if not length:
            log.warning("Failed to send message to queue %s", self.queue_name)
            return False

        log.info(
            "Message sent successfully to queue %s (length=%s): disable %s/%s for %s min",
            self.queue_name,
            length,
            request.function_app_name,
            request.function_name,
            request.disable_period_minutes,
        )
        return True

    def peek(self, limit: int = 50) -> list[CircuitBreakRequest]:
        """Decode pending requests without consuming them."""

        out: list[CircuitBreakRequest] = []
        for raw in self.redis.lrange(self.queue_name, 0, max(limit, 1) - 1):
            try:
                out.append(decode_message(raw))
            except Exception as e:
                log.warning("Skipping undecodable control message on %s: %s", self.queue_name, str(e))
        return out
