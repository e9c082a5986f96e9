from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI

from relay.api.deps import get_control_queue, get_redis
from relay.api.routers.control import router as control_router
from relay.api.routers.messages import router as messages_router
from relay.core.config import ConfigError, load_relay_config, settings
from relay.core.logging import configure_logging

configure_logging(settings.LOG_LEVEL)
log = logging.getLogger("app")

app = FastAPI(title=settings.APP_NAME)


def _retry_backoff(fn, *, attempts: int = 30, base_sleep_s: float = 1.0, max_sleep_s: float = 2.0, what: str) -> bool:
    sleep_s = base_sleep_s
    for i in range(1, attempts + 1):
        try:
            fn()
            return True
        except Exception as e:
            if i == attempts:
                log.error("Startup: %s still not ready after %s attempts: %s", what, attempts, str(e))
                return False
            log.warning("Startup: %s not ready (attempt %s/%s): %s", what, i, attempts, str(e))
            time.sleep(sleep_s)
            sleep_s = min(max_sleep_s, sleep_s * 2.0)
    return False


def _check_redis() -> bool:
    try:
        return bool(get_redis().ping())
    except Exception:
        return False


def _check_config() -> bool:
    try:
        load_relay_config(settings)
        return True
    except ConfigError:
        return False


@app.on_event("startup")
def _startup() -> None:
    try:
        load_relay_config(settings)
    except ConfigError as e:
        # The API can still enqueue; workers refuse to relay until this is fixed.
        log.error("Startup: relay configuration invalid: %s", str(e))

    if not settings.ENSURE_EXTERNAL_DEPS_ON_STARTUP:
        log.info("Startup: ENSURE_EXTERNAL_DEPS_ON_STARTUP=false; skipping control queue ensure")
        return

    _retry_backoff(lambda: get_control_queue().ensure_queue(), what="control queue")


@app.get("/health")
def health() -> dict[str, Any]:
    deps = {
        "redis": _check_redis(),
        "config": _check_config(),
    }
    return {"ok": all(deps.values()), "deps": deps, "app": settings.APP_NAME}


app.include_router(messages_router, prefix="/messages", tags=["messages"])
app.include_router(control_router, prefix="/control", tags=["control"])
