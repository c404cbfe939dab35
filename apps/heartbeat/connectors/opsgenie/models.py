"""Typed request/response models and schema validation for OpsGenie heartbeat endpoints."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class ValidationError(ValueError):
    """Raised when a request or response fails schema validation."""


class IntervalUnit(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


@dataclass(frozen=True)
class HeartbeatIdentity:
    """Mandatory fields shared by every heartbeat operation."""

    api_key: str
    name: str

    def __post_init__(self) -> None:
        if not (self.api_key or "").strip():
            raise ValidationError("api_key is required")
        if not (self.name or "").strip():
            raise ValidationError("name is required")


@dataclass(frozen=True)
class HeartbeatSettings:
    """Optional heartbeat configuration; ``None`` means "let the service decide"."""

    description: str | None = None
    interval: int | None = None
    interval_unit: str | None = None
    enabled: bool | None = None

    def __post_init__(self) -> None:
        if isinstance(self.interval_unit, IntervalUnit):
            object.__setattr__(self, "interval_unit", self.interval_unit.value)
        if self.interval is not None and self.interval <= 0:
            raise ValidationError("interval must be positive")

    def with_enabled(self, enabled: bool) -> "HeartbeatSettings":
        return HeartbeatSettings(
            description=self.description,
            interval=self.interval,
            interval_unit=self.interval_unit,
            enabled=enabled,
        )

    def to_exchange_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.description:
            payload["description"] = self.description
        if self.interval is not None:
            payload["interval"] = self.interval
        if self.interval_unit:
            payload["intervalUnit"] = self.interval_unit
        if self.enabled is not None:
            payload["enabled"] = self.enabled
        return payload


def mandatory_content_params(identity: HeartbeatIdentity) -> dict[str, Any]:
    return {"apiKey": identity.api_key, "name": identity.name}


def all_content_params(identity: HeartbeatIdentity, settings: HeartbeatSettings) -> dict[str, Any]:
    return {**mandatory_content_params(identity), **settings.to_exchange_payload()}


@dataclass(frozen=True)
class HeartbeatRecord:
    name: str
    enabled: bool
    description: str | None = None
    interval: int | None = None
    interval_unit: str | None = None
    expired: bool | None = None
    owner_team: str | None = None

    @classmethod
    def from_exchange(cls, payload: Mapping[str, Any]) -> "HeartbeatRecord":
        data = payload.get("data") if isinstance(payload.get("data"), Mapping) else payload
        name = str(data.get("name") or "")
        if not name:
            raise ValidationError("heartbeat response missing name")

        owner_team = data.get("ownerTeam")
        if isinstance(owner_team, Mapping):
            owner_team = owner_team.get("name") or owner_team.get("id")

        return cls(
            name=name,
            enabled=bool(data.get("enabled", False)),
            description=str(data["description"]) if data.get("description") else None,
            interval=int(data["interval"]) if data.get("interval") is not None else None,
            interval_unit=str(data["intervalUnit"]) if data.get("intervalUnit") else None,
            expired=bool(data["expired"]) if data.get("expired") is not None else None,
            owner_team=str(owner_team) if owner_team else None,
        )


@dataclass(frozen=True)
class ApiErrorRecord:
    code: int
    message: str
    request_id: str | None = None

    @classmethod
    def from_exchange(cls, payload: Mapping[str, Any], *, status_code: int = 0) -> "ApiErrorRecord":
        message = payload.get("error")
        if message is None:
            message = payload.get("message")
        code = payload.get("code")
        if not isinstance(code, int) or isinstance(code, bool):
            code = status_code
        request_id = payload.get("requestId")
        return cls(
            code=code,
            message=str(message) if message is not None else f"unexpected HTTP status: {status_code}",
            request_id=str(request_id) if request_id else None,
        )

    @classmethod
    def from_body(cls, body: bytes | str, *, status_code: int = 0) -> "ApiErrorRecord":
        text = body.decode("utf-8", errors="ignore") if isinstance(body, bytes) else body
        try:
            payload = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError:
            payload = {}
        if not isinstance(payload, Mapping):
            payload = {}
        return cls.from_exchange(payload, status_code=status_code)
