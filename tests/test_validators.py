from __future__ import annotations

import json

from smoke_checks.models import ProbeOutcome, RunExpectations
from smoke_checks.validators import validate_outcome


def _outcome(
    *,
    body: str | None = "",
    headers: dict[str, str] | None = None,
    time_ms: int = 100,
    status: int | None = 200,
    ok: bool = True,
) -> ProbeOutcome:
    return ProbeOutcome(
        endpoint="/x",
        ok=ok,
        time_ms=time_ms,
        status=status,
        bytes=len(body or ""),
        response_headers=dict(headers or {}),
        body_sample=body,
    )


def test_passing_outcome_is_untouched() -> None:
    out = validate_outcome(_outcome(body="all good"), RunExpectations())
    assert out.ok is True
    assert out.error is None
    assert out.warning is None


def test_content_check_is_case_insensitive() -> None:
    out = validate_outcome(_outcome(body="System HEALTH: green"), RunExpectations(expect_contains_text="health"))
    assert out.ok is True

    out = validate_outcome(_outcome(body="<h1>welcome</h1>"), RunExpectations(expect_contains_text="health"))
    assert out.ok is False
    assert out.error == 'missing text: "health"'


def test_content_check_skipped_without_body_sample() -> None:
    out = validate_outcome(_outcome(body=None), RunExpectations(expect_contains_text="health"))
    assert out.ok is True


def test_empty_body_skips_content_and_json_checks() -> None:
    exp = RunExpectations(expect_contains_text="health", expected_json_keys=("status",))

    out = validate_outcome(_outcome(body="", status=204), exp)
    assert out.ok is True
    assert out.error is None

    out = validate_outcome(_outcome(body="", headers={"content-type": "application/json"}), exp)
    assert out.ok is True
    assert out.error is None


def test_each_missing_header_is_reported() -> None:
    exp = RunExpectations(required_header_names=("x-request-id", "cache-control", "content-type"))
    out = validate_outcome(_outcome(headers={"content-type": "text/html"}), exp)
    assert out.ok is False
    assert out.errors == ["missing header: x-request-id", "missing header: cache-control"]
    assert out.error == "missing header: x-request-id | missing header: cache-control"


def test_header_check_ignores_case() -> None:
    exp = RunExpectations(required_header_names=("X-Request-Id",))
    out = validate_outcome(_outcome(headers={"x-request-id": "abc"}), exp)
    assert out.ok is True


def test_json_missing_key() -> None:
    exp = RunExpectations(expected_json_keys=("status", "other"))
    out = validate_outcome(_outcome(body=json.dumps({"other": 1}), headers={"content-type": "application/json"}), exp)
    assert out.ok is False
    assert out.error == "json missing key: status"


def test_json_check_skipped_for_non_json_content_type() -> None:
    exp = RunExpectations(expected_json_keys=("status",))
    out = validate_outcome(_outcome(body="<html></html>", headers={"content-type": "text/html"}), exp)
    assert out.ok is True


def test_json_array_body_reports_every_key_missing() -> None:
    exp = RunExpectations(expected_json_keys=("a", "b"))
    out = validate_outcome(_outcome(body="[1, 2]", headers={"content-type": "application/json"}), exp)
    assert out.errors == ["json missing key: a", "json missing key: b"]


def test_invalid_json_replaces_earlier_errors() -> None:
    exp = RunExpectations(
        expect_contains_text="health",
        required_header_names=("x-request-id",),
        expected_json_keys=("status",),
    )
    out = validate_outcome(_outcome(body="{not json", headers={"content-type": "application/json"}), exp)
    assert out.ok is False
    assert out.error == "invalid JSON"


def test_failures_accumulate_in_check_order() -> None:
    exp = RunExpectations(
        expect_contains_text="health",
        required_header_names=("x-request-id",),
        expected_json_keys=("status",),
    )
    out = validate_outcome(_outcome(body='{"other": 1}', headers={"content-type": "application/json"}), exp)
    assert out.error == 'missing text: "health" | missing header: x-request-id | json missing key: status'


def test_slow_but_passing_probe_only_warns() -> None:
    out = validate_outcome(_outcome(time_ms=1600), RunExpectations(warn_over_ms=1500))
    assert out.ok is True
    assert out.warning == "slow: 1600ms"
    assert out.error is None


def test_latency_at_threshold_does_not_warn() -> None:
    out = validate_outcome(_outcome(time_ms=1500), RunExpectations(warn_over_ms=1500))
    assert out.warning is None


def test_latency_not_checked_once_failed() -> None:
    exp = RunExpectations(expect_contains_text="health", warn_over_ms=1500)
    out = validate_outcome(_outcome(body="nope", time_ms=5000), exp)
    assert out.ok is False
    assert out.warning is None


def test_transport_failure_keeps_its_error_and_gains_header_errors() -> None:
    out = _outcome(body=None, status=None, ok=False)
    out.errors.append("ConnectError: refused")
    validate_outcome(out, RunExpectations(required_header_names=("x-request-id",), expected_json_keys=("status",)))
    assert out.error == "ConnectError: refused | missing header: x-request-id"


def test_serialized_outcome_omits_absent_error_and_warning() -> None:
    data = validate_outcome(_outcome(body="ok"), RunExpectations()).to_dict()
    assert set(data) == {"endpoint", "ok", "status", "timeMs", "bytes", "finalUrl"}

    data = validate_outcome(_outcome(time_ms=2000), RunExpectations(warn_over_ms=1500)).to_dict()
    assert data["warning"] == "slow: 2000ms"
    assert "error" not in data
