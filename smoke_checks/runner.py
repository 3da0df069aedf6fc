from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable
from urllib.parse import urljoin, urlsplit

import httpx
import structlog

from smoke_checks.models import ProbeOutcome, ProbeRequest, RunExpectations, RunReport
from smoke_checks.notify import FailureSink, Notifier
from smoke_checks.pool import run_all
from smoke_checks.probe import execute_probe
from smoke_checks.schema import SmokeInputError, SmokeRequest, parse_smoke_request
from smoke_checks.settings import SmokeSettings
from smoke_checks.validators import validate_outcome

logger = structlog.get_logger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}
SITEMAP_PATH = "/sitemap.xml"
MANIFEST_PATH = "/manifest.json"
SITEMAP_ROOT_MARKERS = ("<urlset", "<sitemapindex")


def normalize_origin(base_url: str) -> str:
    """Reduce `base_url` to scheme://host[:port]; raises SmokeInputError if it is not an absolute http(s) URL."""
    s = str(base_url or "").strip()
    try:
        parts = urlsplit(s)
        port = parts.port
    except ValueError as exc:
        raise SmokeInputError("invalid baseUrl") from exc

    scheme = (parts.scheme or "").lower()
    host = parts.hostname
    if scheme not in _DEFAULT_PORTS or not host:
        raise SmokeInputError("invalid baseUrl")
    if ":" in host:
        host = f"[{host}]"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def join_url(origin: str, path: str) -> str:
    p = str(path or "").strip()
    if not p or p == "/":
        return origin + "/"
    try:
        return urljoin(origin + "/", p)
    except ValueError:
        return origin + (p if p.startswith("/") else "/" + p)


def build_probe_headers(request: SmokeRequest, settings: SmokeSettings) -> dict[str, str]:
    headers = {"User-Agent": settings.user_agent, "Accept": "*/*"}
    if request.authorization:
        headers["Authorization"] = request.authorization
    if request.cookie:
        headers["Cookie"] = request.cookie
    return headers


def format_failure_summary(origin: str, failures: list[ProbeOutcome]) -> str:
    lines = [f"🚨 Smoke failed on {origin}"]
    for f in failures:
        status = f.status if f.status is not None else "no-status"
        line = f"• {f.endpoint}: {status}"
        if f.error:
            line += f" - {f.error}"
        lines.append(line)
    return "\n".join(lines)


def _check_sitemap(outcome: ProbeOutcome) -> ProbeOutcome:
    body = outcome.body_sample or ""
    if not outcome.ok or not any(marker in body for marker in SITEMAP_ROOT_MARKERS):
        outcome.fail("invalid sitemap")
    return outcome


def _check_manifest(outcome: ProbeOutcome) -> ProbeOutcome:
    if not outcome.ok:
        outcome.fail("manifest missing")
    return outcome


AUXILIARY_CHECKS: tuple[tuple[str, Callable[[ProbeOutcome], ProbeOutcome]], ...] = (
    (SITEMAP_PATH, _check_sitemap),
    (MANIFEST_PATH, _check_manifest),
)


async def run_smoke(
    request: SmokeRequest | dict[str, Any],
    *,
    settings: SmokeSettings | None = None,
    client: httpx.AsyncClient | None = None,
    notifier: FailureSink | None = None,
) -> RunReport:
    """
    Execute one smoke run.

    Raises SmokeInputError before any probe is dispatched when the request is
    unusable. Probe-level failures never raise; they are recorded on the
    outcomes. A failing run hands one summary to `notifier` without awaiting
    its delivery.
    """
    settings = settings or SmokeSettings()
    req = parse_smoke_request(request)
    if not req.base_url:
        raise SmokeInputError("baseUrl required")
    origin = normalize_origin(req.base_url)

    timeout_ms = req.effective_timeout_ms(settings)
    expectations: RunExpectations = req.to_expectations(settings)
    headers = build_probe_headers(req, settings)
    started_at = datetime.now(timezone.utc)
    logger.info("smoke run started", origin=origin, paths=len(req.paths), timeout_ms=timeout_ms)

    probes = [
        ProbeRequest(endpoint_path=p, target_url=join_url(origin, p), timeout_ms=timeout_ms, headers=headers)
        for p in req.paths
    ]
    aux_probes = [
        ProbeRequest(endpoint_path=p, target_url=join_url(origin, p), timeout_ms=timeout_ms, headers=headers)
        for p, _check in AUXILIARY_CHECKS
    ]
    aux_checks = dict(AUXILIARY_CHECKS)

    owns_client = client is None
    http_client = client or httpx.AsyncClient()
    try:

        async def _probe_and_validate(probe: ProbeRequest) -> ProbeOutcome:
            outcome = await execute_probe(probe, http_client)
            return validate_outcome(outcome, expectations)

        async def _probe_auxiliary(probe: ProbeRequest) -> ProbeOutcome:
            outcome = await execute_probe(probe, http_client)
            return aux_checks[probe.endpoint_path](outcome)

        results = await run_all(probes, settings.concurrency, _probe_and_validate)
        results.extend(await run_all(aux_probes, settings.concurrency, _probe_auxiliary))
    finally:
        if owns_client:
            await http_client.aclose()

    report = RunReport(
        base_origin=origin,
        started_at=started_at,
        duration_ms=max((r.time_ms for r in results), default=0),
        results=tuple(results),
    )

    failures = report.failures
    logger.info(
        "smoke run finished",
        origin=origin,
        total=len(report.results),
        failed=len(failures),
        duration_ms=report.duration_ms,
    )
    if failures:
        sink = notifier if notifier is not None else Notifier.from_settings(settings)
        try:
            sink.notify(format_failure_summary(origin, failures))
        except Exception as exc:
            logger.debug("failure notification dropped", error=f"{type(exc).__name__}: {exc}")
    return report


async def handle_smoke(
    payload: Any,
    *,
    settings: SmokeSettings | None = None,
    client: httpx.AsyncClient | None = None,
    notifier: FailureSink | None = None,
) -> tuple[int, dict[str, Any]]:
    """Outermost boundary: always returns (status_code, body), never raises."""
    try:
        report = await run_smoke(payload, settings=settings, client=client, notifier=notifier)
    except SmokeInputError as exc:
        logger.info("smoke run rejected", error=str(exc))
        return 400, {"error": str(exc)}
    except Exception as exc:
        logger.exception("smoke run crashed")
        return 500, {"error": str(exc) or type(exc).__name__}
    return 200, report.to_dict()
