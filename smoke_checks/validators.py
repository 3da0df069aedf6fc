from __future__ import annotations

import json

from smoke_checks.models import ProbeOutcome, RunExpectations

INVALID_JSON = "invalid JSON"


def check_content(outcome: ProbeOutcome, expectations: RunExpectations) -> None:
    needle = expectations.expect_contains_text
    if not needle or not outcome.body_sample:
        return
    if needle.lower() not in outcome.body_sample.lower():
        outcome.fail(f'missing text: "{needle}"')


def check_headers(outcome: ProbeOutcome, expectations: RunExpectations) -> None:
    present = {str(k).lower() for k in outcome.response_headers}
    for name in expectations.required_header_names:
        key = str(name or "").strip().lower()
        if key and key not in present:
            outcome.fail(f"missing header: {key}")


def check_json_shape(outcome: ProbeOutcome, expectations: RunExpectations) -> None:
    if not expectations.expected_json_keys or not outcome.body_sample:
        return
    content_type = (outcome.response_headers.get("content-type") or "").lower()
    if "json" not in content_type:
        return

    try:
        data = json.loads(outcome.body_sample)
    except ValueError:
        data = None
    if not isinstance(data, (dict, list)):
        # Parse failure (or a scalar body) replaces whatever was recorded so far.
        outcome.ok = False
        outcome.errors[:] = [INVALID_JSON]
        return

    keys = data if isinstance(data, dict) else {}
    for key in expectations.expected_json_keys:
        if key not in keys:
            outcome.fail(f"json missing key: {key}")


def check_latency(outcome: ProbeOutcome, expectations: RunExpectations) -> None:
    if outcome.ok and outcome.time_ms > expectations.warn_over_ms:
        outcome.warning = f"slow: {outcome.time_ms}ms"


PIPELINE = (check_content, check_headers, check_json_shape, check_latency)


def validate_outcome(outcome: ProbeOutcome, expectations: RunExpectations) -> ProbeOutcome:
    """Run every check in order; failures accumulate on the outcome instead of short-circuiting."""
    for check in PIPELINE:
        check(outcome, expectations)
    return outcome
