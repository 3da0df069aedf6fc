from __future__ import annotations

import asyncio
import time

import httpx
import structlog

from smoke_checks.models import BODY_SAMPLE_LIMIT, ProbeOutcome, ProbeRequest

logger = structlog.get_logger(__name__)


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000.0))


def _describe_exception(exc: BaseException) -> str:
    msg = str(exc or "").strip()
    return f"{type(exc).__name__}: {msg}" if msg else type(exc).__name__


def _decode_sample(content: bytes) -> str | None:
    try:
        return content[:BODY_SAMPLE_LIMIT].decode("utf-8", errors="replace")
    except Exception:
        return None


async def execute_probe(request: ProbeRequest, client: httpx.AsyncClient) -> ProbeOutcome:
    """
    Perform one request against `request.target_url`.

    Never raises for network problems: timeouts and transport errors come back as
    an outcome with `ok=False` and no status. The timeout covers the whole
    exchange (connect, redirects and body read).
    """
    timeout_s = max(1, int(request.timeout_ms)) / 1000.0
    started = time.perf_counter()
    try:
        resp = await asyncio.wait_for(
            client.request(
                request.method,
                request.target_url,
                headers=dict(request.headers),
                follow_redirects=True,
                timeout=timeout_s,
            ),
            timeout=timeout_s,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        outcome = ProbeOutcome(endpoint=request.endpoint_path, ok=False, time_ms=_elapsed_ms(started))
        outcome.fail(f"timeout {request.timeout_ms}ms")
        logger.info("probe timed out", url=request.target_url, timeout_ms=request.timeout_ms)
        return outcome
    except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError) as exc:
        # ValueError covers header values httpx cannot encode (UnicodeEncodeError).
        outcome = ProbeOutcome(endpoint=request.endpoint_path, ok=False, time_ms=_elapsed_ms(started))
        outcome.fail(_describe_exception(exc))
        logger.info("probe transport error", url=request.target_url, error=outcome.error)
        return outcome

    elapsed = _elapsed_ms(started)
    content = resp.content or b""
    outcome = ProbeOutcome(
        endpoint=request.endpoint_path,
        ok=resp.is_success,
        time_ms=elapsed,
        status=int(resp.status_code),
        bytes=len(content),
        final_url=str(resp.url),
        response_headers={k.lower(): v for k, v in resp.headers.items()},
        body_sample=_decode_sample(content),
    )
    if not resp.is_success:
        outcome.errors.append(f"http status {resp.status_code}")
    return outcome
