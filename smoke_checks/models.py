from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

ERROR_SEPARATOR = " | "
BODY_SAMPLE_LIMIT = 64 * 1024


@dataclass(frozen=True)
class ProbeRequest:
    endpoint_path: str
    target_url: str
    timeout_ms: int
    headers: Mapping[str, str] = field(default_factory=dict)
    method: str = "GET"


@dataclass
class ProbeOutcome:
    """
    Result of a single probe.

    Validators append to `errors`; the joined `error` string only exists at the
    read/serialization boundary.
    """

    endpoint: str
    ok: bool
    time_ms: int
    status: int | None = None
    bytes: int | None = None
    final_url: str | None = None
    response_headers: dict[str, str] = field(default_factory=dict)
    body_sample: str | None = None
    errors: list[str] = field(default_factory=list)
    warning: str | None = None

    @property
    def error(self) -> str | None:
        if not self.errors:
            return None
        return ERROR_SEPARATOR.join(self.errors)

    def fail(self, reason: str) -> None:
        self.ok = False
        self.errors.append(reason)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "endpoint": self.endpoint,
            "ok": self.ok,
            "status": self.status,
            "timeMs": self.time_ms,
            "bytes": self.bytes,
            "finalUrl": self.final_url,
        }
        if self.errors:
            out["error"] = self.error
        if self.warning:
            out["warning"] = self.warning
        return out


@dataclass(frozen=True)
class RunExpectations:
    expect_contains_text: str | None = None
    required_header_names: tuple[str, ...] = ()
    expected_json_keys: tuple[str, ...] = ()
    warn_over_ms: int = 1500


@dataclass(frozen=True)
class RunReport:
    base_origin: str
    started_at: datetime
    duration_ms: int
    results: tuple[ProbeOutcome, ...]

    @property
    def failures(self) -> list[ProbeOutcome]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseUrl": self.base_origin,
            "startedAt": self.started_at.isoformat().replace("+00:00", "Z"),
            "durationMs": self.duration_ms,
            "results": [r.to_dict() for r in self.results],
        }
