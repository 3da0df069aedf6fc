from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TypeVar

DEFAULT_USER_AGENT = "SmokeTester/1.0 (+smoke-checks)"

T = TypeVar("T", bool, int, float, str)

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


def _env(default: T, *names: str) -> T:
    """
    First non-blank value among `names`, coerced to the type of `default`.

    Values that do not parse as that type are ignored, so a typo in the
    environment never stops the service from starting.
    """
    raw = next((v.strip() for v in (os.getenv(n) or "" for n in names) if v.strip()), None)
    if raw is None:
        return default
    if isinstance(default, bool):
        flag = raw.lower()
        return flag in _TRUTHY if flag in _TRUTHY | _FALSY else default
    if isinstance(default, (int, float)):
        try:
            return type(default)(raw)
        except ValueError:
            return default
    return raw


@dataclass(frozen=True)
class SmokeSettings:
    user_agent: str = field(default_factory=lambda: _env(DEFAULT_USER_AGENT, "SMOKE_USER_AGENT"))

    # Probe limits. Request-supplied timeouts are clamped into [min, max].
    concurrency: int = field(default_factory=lambda: max(1, _env(5, "SMOKE_CONCURRENCY")))
    default_timeout_ms: int = field(default_factory=lambda: _env(8000, "SMOKE_DEFAULT_TIMEOUT_MS"))
    min_timeout_ms: int = 1000
    max_timeout_ms: int = 30000
    default_warn_over_ms: int = field(default_factory=lambda: _env(1500, "SMOKE_DEFAULT_WARN_OVER_MS"))

    # Failure notifications
    notifications_enabled: bool = field(default_factory=lambda: _env(True, "SMOKE_NOTIFICATIONS_ENABLED"))
    webhook_url: str = field(default_factory=lambda: _env("", "SMOKE_WEBHOOK_URL", "SLACK_WEBHOOK_URL"))
    telegram_bot_token: str = field(default_factory=lambda: _env("", "TELEGRAM_BOT_TOKEN"))
    telegram_chat_id: str = field(default_factory=lambda: _env("", "TELEGRAM_CHAT_ID"))
    notify_timeout_seconds: float = field(default_factory=lambda: _env(10.0, "SMOKE_NOTIFY_TIMEOUT_SECONDS"))

    # HTTP API
    host: str = field(default_factory=lambda: _env("0.0.0.0", "SMOKE_HOST"))
    port: int = field(default_factory=lambda: _env(8112, "SMOKE_PORT"))
    log_level: str = field(default_factory=lambda: _env("INFO", "SMOKE_LOG_LEVEL"))

    def clamp_timeout_ms(self, value: int) -> int:
        return max(int(self.min_timeout_ms), min(int(value), int(self.max_timeout_ms)))
