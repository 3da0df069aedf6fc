"""Best-effort failure notifications (Slack-style webhook and/or Telegram)."""

from __future__ import annotations

import asyncio
from typing import Protocol

import httpx
import structlog

from smoke_checks.settings import SmokeSettings
from smoke_checks.telegram import TelegramConfig, redact_token, send_telegram_message_chunked

logger = structlog.get_logger(__name__)


class FailureSink(Protocol):
    def notify(self, message: str) -> None: ...


class Notifier:
    """Fire-and-forget delivery of a text message.

    `notify` only schedules the delivery; the caller never awaits it and never
    sees its outcome. Without any configured destination it does nothing.
    """

    def __init__(
        self,
        *,
        webhook_url: str | None = None,
        telegram: TelegramConfig | None = None,
        timeout_seconds: float = 10.0,
    ):
        self.webhook_url = (webhook_url or "").strip() or None
        self.telegram = telegram if telegram and telegram.bot_token and telegram.chat_id else None
        self.timeout_seconds = float(timeout_seconds)
        self._pending: set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings: SmokeSettings) -> Notifier:
        if not settings.notifications_enabled:
            return cls(timeout_seconds=settings.notify_timeout_seconds)
        telegram = None
        if settings.telegram_bot_token and settings.telegram_chat_id:
            telegram = TelegramConfig(bot_token=settings.telegram_bot_token, chat_id=settings.telegram_chat_id)
        return cls(
            webhook_url=settings.webhook_url,
            telegram=telegram,
            timeout_seconds=settings.notify_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.webhook_url or self.telegram)

    def notify(self, message: str) -> None:
        if not self.configured:
            return
        try:
            task = asyncio.get_running_loop().create_task(self._deliver(message))
        except RuntimeError:
            logger.debug("notification skipped, no running event loop")
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight deliveries; used by short-lived processes before exiting."""
        if not self._pending:
            return
        await asyncio.wait(set(self._pending), timeout=timeout)

    async def _deliver(self, message: str) -> None:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            if self.webhook_url:
                try:
                    resp = await client.post(self.webhook_url, json={"text": message})
                    resp.raise_for_status()
                    logger.info("webhook notification sent")
                except Exception as exc:
                    logger.debug("webhook notification failed", error=f"{type(exc).__name__}: {exc}")
            if self.telegram:
                try:
                    parts = await send_telegram_message_chunked(client, self.telegram, message)
                    logger.info("telegram notification sent", parts=parts)
                except Exception as exc:
                    error = redact_token(f"{type(exc).__name__}: {exc}", self.telegram)
                    logger.debug("telegram notification failed", error=error)
