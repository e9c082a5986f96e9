from __future__ import annotations

import base64
import json

from relay.dispatch.disposition import CircuitBreakRequest
from relay.integrations.control_queue import KNOWN_QUEUES_KEY, ControlQueueNotifier, decode_message, encode_message
from tests.utils_relay import FakeRedis


def _notifier(redis=None) -> ControlQueueNotifier:
    return ControlQueueNotifier(redis or FakeRedis(), queue_name="relay-control", resource_group="rg-test")


def test_request_pause_publishes_base64_json():
    r = FakeRedis()
    ok = _notifier(r).request_pause("relay-app", "relay_message", 5)

    assert ok is True
    assert len(r.data["relay-control"]) == 1

    raw = r.data["relay-control"][0]
    msg = json.loads(base64.b64decode(raw).decode("utf-8"))
    assert msg == {
        "FunctionAppName": "relay-app",
        "FunctionName": "relay_message",
        "ResourceGroupName": "rg-test",
        "DisableFunction": True,
        "DisablePeriodMinutes": 5,
    }


def test_default_cooldown_is_five_minutes():
    r = FakeRedis()
    _notifier(r).request_pause("a", "f")
    assert decode_message(r.data["relay-control"][0]).disable_period_minutes == 5


def test_queue_is_provisioned_idempotently():
    r = FakeRedis()
    n = _notifier(r)
    n.ensure_queue()
    n.ensure_queue()
    n.request_pause("a", "f", 1)
    assert r.data[KNOWN_QUEUES_KEY] == {"relay-control"}


def test_wrong_key_type_returns_false():
    r = FakeRedis()
    r.set("relay-control", "not-a-list")
    assert _notifier(r).request_pause("a", "f", 5) is False


def test_publish_failure_returns_false_without_raising():
    r = FakeRedis(fail_on="rpush")
    assert _notifier(r).request_pause("a", "f", 5) is False


def test_connection_failure_returns_false_without_raising():
    r = FakeRedis(fail_on="type")
    assert _notifier(r).request_pause("a", "f", 5) is False


def test_publish_is_attempted_once():
    calls = {"n": 0}

    class CountingRedis(FakeRedis):
        def rpush(self, key, *values):
            calls["n"] += 1
            raise ConnectionError("down")

    assert _notifier(CountingRedis()).request_pause("a", "f", 5) is False
    assert calls["n"] == 1


def test_encode_decode_and_peek():
    req = CircuitBreakRequest(
        function_app_name="a",
        function_name="f",
        resource_group_name="rg",
        disable_period_minutes=3,
    )
    assert decode_message(encode_message(req)) == req

    r = FakeRedis()
    n = _notifier(r)
    n.notify(req)
    r.rpush("relay-control", "%%%not-base64%%%")
    assert n.peek(10) == [req]
