import json
import os
import socket
import time
import urllib.parse

TIMEOUT = int(os.getenv("TIMEOUT_S", "120"))
REDIS_HOST = os.getenv("REDIS_HOST", "redis")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
HTTP_ENDPOINT = os.getenv("HTTP_ENDPOINT", "")


def http_reachable(url: str) -> bool:
    # Any response counts: the endpoint only has to accept connections.
    parts = urllib.parse.urlsplit(url)
    if not parts.hostname:
        return False
    port = parts.port or (443 if parts.scheme == "https" else 80)
    return tcp_ok(parts.hostname, port)


def tcp_ok(host: str, port: int) -> bool:
    try:
        s = socket.create_connection((host, port), timeout=2)
        s.close()
        return True
    except Exception:
        return False


def main() -> int:
    deadline = time.time() + TIMEOUT
    ok_redis = ok_endpoint = False
    while time.time() < deadline:
        ok_redis = tcp_ok(REDIS_HOST, REDIS_PORT)
        ok_endpoint = http_reachable(HTTP_ENDPOINT) if HTTP_ENDPOINT else True
        if ok_redis and ok_endpoint:
            print(json.dumps({"ready": True, "redis": ok_redis, "endpoint": ok_endpoint}))
            return 0
        time.sleep(2)
    print(json.dumps({"ready": False, "redis": ok_redis, "endpoint": ok_endpoint}))
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
