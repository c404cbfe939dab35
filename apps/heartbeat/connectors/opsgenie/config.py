"""Configuration model for the OpsGenie connector."""

from __future__ import annotations

from dataclasses import dataclass
from os import getenv

DEFAULT_BASE_URL = "https://api.opsgenie.com"
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class OpsgenieConfig:
    """Centralized connector configuration."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    auth_scheme: str = "GenieKey"

    def __post_init__(self) -> None:
        if not self.base_url.strip():
            raise ValueError("base_url must be a non-empty string")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

    @property
    def authorization(self) -> str:
        return f"{self.auth_scheme} {self.api_key}"

    @classmethod
    def from_env(cls) -> "OpsgenieConfig":
        """Build config from environment variables."""

        return cls(
            base_url=getenv("OPSGENIE_API_URL", DEFAULT_BASE_URL),
            api_key=getenv("OPSGENIE_API_KEY", ""),
            timeout_seconds=float(getenv("OPSGENIE_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))),
        )
