from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import yaml

from smoke_checks.log import configure_logging
from smoke_checks.notify import Notifier
from smoke_checks.runner import handle_smoke
from smoke_checks.schema import SmokeInputError
from smoke_checks.settings import SmokeSettings

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INPUT_ERROR = 2
EXIT_INTERNAL_ERROR = 3


def load_config_file(path: Path) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise SmokeInputError(f"config file {path} must contain a mapping")
    return data


def build_payload(args: argparse.Namespace) -> dict[str, Any]:
    payload: dict[str, Any] = load_config_file(Path(args.config)) if args.config else {}
    overrides = {
        "baseUrl": args.base_url,
        "paths": args.path or None,
        "timeoutMs": args.timeout_ms,
        "expectContains": args.expect_contains,
        "requireHeaders": args.require_header or None,
        "expectJsonKeys": args.expect_json_key or None,
        "warnOverMs": args.warn_over_ms,
        "authorization": args.authorization,
        "cookie": args.cookie,
    }
    payload.update({k: v for k, v in overrides.items() if v is not None})
    return payload


def render_table(body: dict[str, Any]) -> str:
    results = body.get("results") or []
    lines = [f"{body.get('baseUrl')}  started={body.get('startedAt')}  duration={body.get('durationMs')}ms"]
    for r in results:
        mark = "OK  " if r.get("ok") else "FAIL"
        status = r.get("status") if r.get("status") is not None else "-"
        note = r.get("error") or r.get("warning") or ""
        lines.append(f"{mark}  {str(status):>4}  {str(r.get('timeMs')):>6}ms  {r.get('endpoint')}  {note}".rstrip())
    failed = sum(1 for r in results if not r.get("ok"))
    lines.append(f"{len(results) - failed}/{len(results)} passed")
    return "\n".join(lines)


async def run_once(payload: dict[str, Any], settings: SmokeSettings) -> tuple[int, dict[str, Any]]:
    notifier = Notifier.from_settings(settings)
    status, body = await handle_smoke(payload, settings=settings, notifier=notifier)
    # The process exits right after; give pending alerts a bounded chance to go out.
    await notifier.drain(timeout=settings.notify_timeout_seconds)
    return status, body


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run smoke checks against a site")
    parser.add_argument("base_url", nargs="?", default=None, help="Base URL, e.g. https://example.com")
    parser.add_argument("--path", action="append", default=[], help="Path to probe (repeatable, default /)")
    parser.add_argument("--timeout-ms", type=int, default=None, help="Per-probe timeout, clamped to 1000-30000")
    parser.add_argument("--expect-contains", default=None, help="Case-insensitive text every page must contain")
    parser.add_argument("--require-header", action="append", default=[], help="Response header that must be present")
    parser.add_argument("--expect-json-key", action="append", default=[], help="Top-level key JSON bodies must have")
    parser.add_argument("--warn-over-ms", type=int, default=None, help="Latency above which a passing probe warns")
    parser.add_argument("--authorization", default=None, help="Authorization header sent with every probe")
    parser.add_argument("--cookie", default=None, help="Cookie header sent with every probe")
    parser.add_argument("--config", default=None, help="YAML file with request fields (flags override it)")
    parser.add_argument("--json", action="store_true", help="Print the raw JSON report")
    parser.add_argument("--log-level", default=None, help="Logging level (INFO, WARNING, ...)")
    args = parser.parse_args(argv)

    settings = SmokeSettings()
    configure_logging(args.log_level or settings.log_level)

    try:
        payload = build_payload(args)
    except (OSError, yaml.YAMLError, SmokeInputError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    status, body = asyncio.run(run_once(payload, settings))
    if status != 200:
        print(f"error: {body.get('error')}", file=sys.stderr)
        return EXIT_INPUT_ERROR if status < 500 else EXIT_INTERNAL_ERROR

    print(json.dumps(body, ensure_ascii=False, indent=2) if args.json else render_table(body))
    return EXIT_OK if all(r.get("ok") for r in body.get("results") or []) else EXIT_FAILED


if __name__ == "__main__":
    raise SystemExit(main())
