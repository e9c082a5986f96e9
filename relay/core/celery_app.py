from __future__ import annotations

from celery import Celery
from celery.signals import setup_logging

from relay.core.config import settings
from relay.core.logging import configure_logging

celery = Celery(
    "queue_relay",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["relay.tasks.relay_tasks"],
)

celery.conf.update(
    task_always_eager=settings.CELERY_TASK_ALWAYS_EAGER,
    task_eager_propagates=True,
    task_default_queue=settings.RELAY_QUEUE_NAME,
    # A message is only removed from the queue once its disposition has been applied.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_acks_on_failure_or_timeout=False,
    worker_prefetch_multiplier=1,
)


@setup_logging.connect
def _setup_logging(**_kwargs) -> None:
    configure_logging(settings.LOG_LEVEL)
