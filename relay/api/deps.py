from __future__ import annotations

from redis import Redis

from relay.core.config import settings
from relay.integrations.control_queue import ControlQueueNotifier
from relay.intake.actions import RedisDeadLetterStore


def get_redis() -> Redis:
    return Redis.from_url(settings.REDIS_URL, socket_connect_timeout=1, socket_timeout=1)


def get_control_queue() -> ControlQueueNotifier:
    return ControlQueueNotifier(
        get_redis(),
        queue_name=settings.CONTROL_QUEUE_NAME,
        resource_group=settings.RESOURCE_GROUP_NAME or "",
    )


def get_dead_letters() -> RedisDeadLetterStore:
    return RedisDeadLetterStore(get_redis(), queue_name=settings.DEAD_LETTER_QUEUE_NAME)
