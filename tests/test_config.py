from __future__ import annotations

import pytest


def test_load_relay_config_valid(monkeypatch):
    monkeypatch.setenv("HTTP_ENDPOINT", "https://consumer.example/in")
    monkeypatch.setenv("RESOURCE_GROUP_NAME", "rg-1")
    monkeypatch.delenv("WEBSITE_SITE_NAME", raising=False)
    monkeypatch.delenv("FUNCTION_APP_NAME", raising=False)

    from relay.core.config import Settings, load_relay_config

    cfg = load_relay_config(Settings())
    assert cfg.http_endpoint == "https://consumer.example/in"
    assert cfg.resource_group_name == "rg-1"
    assert cfg.cooldown_minutes == 5
    assert cfg.function_app_name == "FuncSbProxy"


def test_platform_site_name_wins(monkeypatch):
    monkeypatch.setenv("HTTP_ENDPOINT", "https://consumer.example/in")
    monkeypatch.setenv("RESOURCE_GROUP_NAME", "rg-1")
    monkeypatch.setenv("WEBSITE_SITE_NAME", "site-from-platform")
    monkeypatch.setenv("FUNCTION_APP_NAME", "from-config")

    from relay.core.config import Settings, load_relay_config

    assert load_relay_config(Settings()).function_app_name == "site-from-platform"


def test_app_name_from_config_when_no_platform_name(monkeypatch):
    monkeypatch.setenv("HTTP_ENDPOINT", "https://consumer.example/in")
    monkeypatch.setenv("RESOURCE_GROUP_NAME", "rg-1")
    monkeypatch.delenv("WEBSITE_SITE_NAME", raising=False)
    monkeypatch.setenv("FUNCTION_APP_NAME", "from-config")

    from relay.core.config import Settings, load_relay_config

    assert load_relay_config(Settings()).function_app_name == "from-config"


def test_missing_values_reported_together(monkeypatch):
    monkeypatch.delenv("HTTP_ENDPOINT", raising=False)
    monkeypatch.delenv("RESOURCE_GROUP_NAME", raising=False)
    monkeypatch.setenv("DISABLE_FUNC_PERIOD_MIN", "-1")

    from relay.core.config import ConfigError, Settings, load_relay_config

    with pytest.raises(ConfigError) as ei:
        load_relay_config(Settings(_env_file=None))
    msg = str(ei.value)
    assert "HTTP_ENDPOINT" in msg
    assert "RESOURCE_GROUP_NAME" in msg
    assert "DISABLE_FUNC_PERIOD_MIN" in msg


def test_non_http_endpoint_rejected(monkeypatch):
    monkeypatch.setenv("HTTP_ENDPOINT", "ftp://consumer.example/in")
    monkeypatch.setenv("RESOURCE_GROUP_NAME", "rg-1")

    from relay.core.config import ConfigError, Settings, load_relay_config

    with pytest.raises(ConfigError):
        load_relay_config(Settings())


def test_zero_cooldown_is_allowed(monkeypatch):
    monkeypatch.setenv("HTTP_ENDPOINT", "http://consumer.example/in")
    monkeypatch.setenv("RESOURCE_GROUP_NAME", "rg-1")
    monkeypatch.setenv("DISABLE_FUNC_PERIOD_MIN", "0")

    from relay.core.config import Settings, load_relay_config

    assert load_relay_config(Settings()).cooldown_minutes == 0
