from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel((level or "INFO").upper())

    # Idempotent: API and worker both call this on import.
    for h in root.handlers:
        if getattr(h, "_relay_handler", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._relay_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    # httpx logs every request at INFO; the sender already does.
    logging.getLogger("httpx").setLevel(logging.WARNING)
