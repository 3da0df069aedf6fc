from __future__ import annotations

from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class TelegramConfig:
    bot_token: str
    chat_id: str


TELEGRAM_MAX_MESSAGE_LEN = 3900


def split_telegram_message(text: str, *, max_len: int = TELEGRAM_MAX_MESSAGE_LEN) -> list[str]:
    """Pack whole summary lines into chunks of at most `max_len` characters."""
    limit = max(1, int(max_len))
    chunks: list[str] = []
    current = ""
    for line in (text or "").strip().splitlines():
        # A single line longer than the limit is cut into fixed-size pieces.
        pieces = [line[i : i + limit] for i in range(0, len(line), limit)] or [""]
        for piece in pieces:
            candidate = f"{current}\n{piece}" if current else piece
            if len(candidate) <= limit:
                current = candidate
                continue
            chunks.append(current)
            current = piece
    if current:
        chunks.append(current)
    return chunks


async def send_telegram_message(client: httpx.AsyncClient, config: TelegramConfig, text: str) -> None:
    url = f"https://api.telegram.org/bot{config.bot_token}/sendMessage"
    resp = await client.post(url, json={"chat_id": config.chat_id, "text": text})
    resp.raise_for_status()


async def send_telegram_message_chunked(client: httpx.AsyncClient, config: TelegramConfig, text: str) -> int:
    parts = split_telegram_message(text)
    for part in parts:
        await send_telegram_message(client, config, part)
    return len(parts)


def redact_token(message: str, config: TelegramConfig) -> str:
    if config.bot_token:
        return message.replace(config.bot_token, "<redacted>")
    return message
