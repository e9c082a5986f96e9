from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from relay.dispatch.outcomes import RelayOutcome, TransportError, classify_status

log = logging.getLogger("http_sender")

DEFAULT_CONTENT_TYPE = "application/json"


def _truncate(s: str, n: int = 200) -> str:
    s = s or ""
    return s if len(s) <= n else s[:n] + "…"


class HttpMessageSender:
    """POSTs message bodies to the downstream endpoint.

    Pure transport: one request per call, no retries. The returned outcome keeps
    the status code verbatim; any failure to obtain a response is a TransportError.
    """

    def __init__(self, client: httpx.Client | None = None, *, timeout_s: float = 10.0) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_s)

    def __enter__(self) -> HttpMessageSender:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def send_message(
        self,
        endpoint: str,
        body: str | bytes,
        message_id: str | None = None,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> RelayOutcome:
        headers = {"Content-Type": content_type}
        if message_id:
            headers["X-Message-ID"] = message_id

        content = body.encode("utf-8") if isinstance(body, str) else body

        try:
            log.info("Sending message to endpoint: %s", endpoint)
            resp = self._client.post(endpoint, content=content, headers=headers)
        except Exception as e:
            log.error("Error occurred while sending message to %s: %s: %s", endpoint, type(e).__name__, str(e))
            return TransportError(reason=f"{type(e).__name__}: {e}")

        status_code = resp.status_code
        if resp.is_success:
            log.info("Message sent successfully to %s. Status: %s", endpoint, status_code)
        else:
            try:
                text = resp.text
            except Exception:
                text = ""
            log.warning(
                "Failed to send message to %s. Status: %s, Response: %s",
                endpoint,
                status_code,
                _truncate(text, 1000),
            )

        return classify_status(status_code)

    def send_json(self, endpoint: str, data: Any, message_id: str | None = None) -> RelayOutcome:
        if data is None:
            raise ValueError("data must not be None")

        try:
            payload = json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            log.error("Error occurred while serializing object to JSON: %s", str(e))
            return TransportError(reason=f"serialization: {e}")

        return self.send_message(endpoint, payload, message_id, DEFAULT_CONTENT_TYPE)
