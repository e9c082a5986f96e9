from __future__ import annotations

from dataclasses import dataclass

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class ConfigError(ValueError):
    pass


class Settings(BaseSettings):
    APP_NAME: str = "queue-relay"
    APP_ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    # In unit tests / CI we avoid long startup retries against external deps.
    ENSURE_EXTERNAL_DEPS_ON_STARTUP: bool = True

    # Downstream consumer.
    HTTP_ENDPOINT: str | None = None
    HTTP_TIMEOUT_S: float = 10.0

    # Identity used in circuit-break requests. The hosting platform name wins when set.
    FUNCTION_APP_NAME: str = Field(
        default="FuncSbProxy",
        validation_alias=AliasChoices("WEBSITE_SITE_NAME", "FUNCTION_APP_NAME"),
    )
    FUNCTION_NAME: str = "relay_message"
    RESOURCE_GROUP_NAME: str | None = None
    DISABLE_FUNC_PERIOD_MIN: int = 5

    REDIS_URL: str = "redis://localhost:6379/0"
    CONTROL_QUEUE_NAME: str = "relay-control"
    DEAD_LETTER_QUEUE_NAME: str = "relay-deadletter"

    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"
    CELERY_TASK_ALWAYS_EAGER: bool = False

    RELAY_QUEUE_NAME: str = "myqueue"
    RELAY_MAX_DELIVERY_COUNT: int = 10
    RELAY_RETRY_DELAY_S: int = 30

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


settings = Settings()


@dataclass(frozen=True)
class RelayConfig:
    """Validated, immutable view of the settings the relay path needs."""

    http_endpoint: str
    http_timeout_s: float
    function_app_name: str
    function_name: str
    resource_group_name: str
    cooldown_minutes: int
    control_queue_name: str
    dead_letter_queue_name: str
    max_delivery_count: int
    retry_delay_s: int


def load_relay_config(s: Settings | None = None) -> RelayConfig:
    """Build a RelayConfig from settings, reporting every problem at once."""

    s = s or settings
    problems: list[str] = []

    endpoint = (s.HTTP_ENDPOINT or "").strip()
    if not endpoint:
        problems.append("HTTP_ENDPOINT is missing")
    elif not endpoint.lower().startswith(("http://", "https://")):
        problems.append(f"HTTP_ENDPOINT must be an http(s) URL: {endpoint!r}")

    resource_group = (s.RESOURCE_GROUP_NAME or "").strip()
    if not resource_group:
        problems.append("RESOURCE_GROUP_NAME is missing")

    if s.HTTP_TIMEOUT_S <= 0:
        problems.append("HTTP_TIMEOUT_S must be > 0")
    if s.DISABLE_FUNC_PERIOD_MIN < 0:
        problems.append("DISABLE_FUNC_PERIOD_MIN must be >= 0")
    if s.RELAY_MAX_DELIVERY_COUNT < 1:
        problems.append("RELAY_MAX_DELIVERY_COUNT must be >= 1")
    if not s.CONTROL_QUEUE_NAME.strip():
        problems.append("CONTROL_QUEUE_NAME is missing")

    if problems:
        raise ConfigError("; ".join(problems))

    return RelayConfig(
        http_endpoint=endpoint,
        http_timeout_s=s.HTTP_TIMEOUT_S,
        function_app_name=s.FUNCTION_APP_NAME or "FuncSbProxy",
        function_name=s.FUNCTION_NAME,
        resource_group_name=resource_group,
        cooldown_minutes=s.DISABLE_FUNC_PERIOD_MIN,
        control_queue_name=s.CONTROL_QUEUE_NAME.strip(),
        dead_letter_queue_name=s.DEAD_LETTER_QUEUE_NAME,
        max_delivery_count=s.RELAY_MAX_DELIVERY_COUNT,
        retry_delay_s=s.RELAY_RETRY_DELAY_S,
    )
