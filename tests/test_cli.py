from __future__ import annotations

import argparse
from pathlib import Path

import pytest

from smoke_checks import cli


def _args(**overrides) -> argparse.Namespace:
    base = dict(
        base_url=None,
        path=[],
        timeout_ms=None,
        expect_contains=None,
        require_header=[],
        expect_json_key=[],
        warn_over_ms=None,
        authorization=None,
        cookie=None,
        config=None,
    )
    base.update(overrides)
    return argparse.Namespace(**base)


def test_build_payload_merges_config_and_flags(tmp_path: Path) -> None:
    cfg = tmp_path / "smoke.yaml"
    cfg.write_text(
        "baseUrl: https://from-config.example.com\n"
        "paths: [/, /login]\n"
        "warnOverMs: 900\n"
        "requireHeaders: [cache-control]\n",
        encoding="utf-8",
    )

    payload = cli.build_payload(_args(config=str(cfg), path=["/api/health"], expect_json_key=["status"]))

    assert payload["baseUrl"] == "https://from-config.example.com"
    assert payload["paths"] == ["/api/health"]
    assert payload["warnOverMs"] == 900
    assert payload["requireHeaders"] == ["cache-control"]
    assert payload["expectJsonKeys"] == ["status"]


def test_build_payload_rejects_non_mapping_config(tmp_path: Path) -> None:
    cfg = tmp_path / "smoke.yaml"
    cfg.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(cli.SmokeInputError):
        cli.build_payload(_args(config=str(cfg)))


def test_render_table() -> None:
    body = {
        "baseUrl": "https://example.com",
        "startedAt": "2025-01-01T00:00:00Z",
        "durationMs": 120,
        "results": [
            {"endpoint": "/", "ok": True, "status": 200, "timeMs": 120, "warning": "slow: 120ms"},
            {"endpoint": "/api", "ok": False, "status": None, "timeMs": 8000, "error": "timeout 8000ms"},
        ],
    }
    out = cli.render_table(body).splitlines()
    assert out[0].startswith("https://example.com")
    assert out[1].startswith("OK") and out[1].endswith("slow: 120ms")
    assert out[2].startswith("FAIL") and out[2].endswith("timeout 8000ms")
    assert out[-1] == "1/2 passed"


def test_main_invalid_base_url_exits_with_input_error(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    monkeypatch.delenv("SMOKE_WEBHOOK_URL", raising=False)
    monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)
    code = cli.main(["not a url", "--log-level", "WARNING"])
    assert code == cli.EXIT_INPUT_ERROR
    assert "invalid baseUrl" in capsys.readouterr().err


def test_main_missing_config_file(tmp_path: Path, capsys) -> None:
    code = cli.main(["--config", str(tmp_path / "missing.yaml"), "--log-level", "WARNING"])
    assert code == cli.EXIT_INPUT_ERROR
    assert "error:" in capsys.readouterr().err
