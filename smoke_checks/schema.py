from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from smoke_checks.models import RunExpectations
from smoke_checks.settings import SmokeSettings


class SmokeInputError(ValueError):
    """Raised for request payloads that cannot start a run (reported as a 4xx)."""


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(x) for x in value if x is not None]


class SmokeRequest(BaseModel):
    """Run request as submitted by the dashboard (camelCase) or the CLI (snake_case)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_url: str | None = Field(None, alias="baseUrl")
    paths: list[str] = Field(default_factory=lambda: ["/"])
    timeout_ms: int | None = Field(None, alias="timeoutMs")
    expect_contains: str | None = Field(None, alias="expectContains")
    require_headers: list[str] = Field(default_factory=list, alias="requireHeaders")
    expect_json_keys: list[str] = Field(default_factory=list, alias="expectJsonKeys")
    warn_over_ms: int | None = Field(None, alias="warnOverMs")
    authorization: str | None = None
    cookie: str | None = None

    @field_validator("base_url", mode="before")
    @classmethod
    def _base_url(cls, value: Any) -> str | None:
        if value is None:
            return None
        s = str(value).strip()
        return s or None

    @field_validator("paths", mode="before")
    @classmethod
    def _paths(cls, value: Any) -> list[str]:
        items = _str_list(value)
        return items if items else ["/"]

    @field_validator("timeout_ms", mode="before")
    @classmethod
    def _timeout(cls, value: Any) -> int | None:
        # Numbers, 0 and negatives too, are clamped later. Anything else uses the default.
        if not _is_number(value):
            return None
        return int(value)

    @field_validator("warn_over_ms", mode="before")
    @classmethod
    def _warn_over(cls, value: Any) -> int | None:
        if not _is_number(value) or not value:
            return None
        return int(value)

    @field_validator("expect_contains", "authorization", "cookie", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str | None:
        if not value:
            return None
        return str(value)

    @field_validator("require_headers", mode="before")
    @classmethod
    def _headers(cls, value: Any) -> list[str]:
        return [h.strip().lower() for h in _str_list(value) if h.strip()]

    @field_validator("expect_json_keys", mode="before")
    @classmethod
    def _json_keys(cls, value: Any) -> list[str]:
        return [k.strip() for k in _str_list(value) if k.strip()]

    def effective_timeout_ms(self, settings: SmokeSettings) -> int:
        value = settings.default_timeout_ms if self.timeout_ms is None else self.timeout_ms
        return settings.clamp_timeout_ms(value)

    def to_expectations(self, settings: SmokeSettings) -> RunExpectations:
        return RunExpectations(
            expect_contains_text=self.expect_contains,
            required_header_names=tuple(self.require_headers),
            expected_json_keys=tuple(self.expect_json_keys),
            warn_over_ms=int(self.warn_over_ms or settings.default_warn_over_ms),
        )


def parse_smoke_request(payload: Any) -> SmokeRequest:
    if isinstance(payload, SmokeRequest):
        return payload
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise SmokeInputError("request body must be a JSON object")
    try:
        return SmokeRequest.model_validate(payload)
    except ValidationError as exc:
        raise SmokeInputError(f"invalid request: {exc.errors()[0].get('msg', 'validation error')}") from exc
