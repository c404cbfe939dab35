"""Dependency injection entry points for OpsGenie connector interfaces."""

from __future__ import annotations

from .client import OpsgenieClient, OpsgenieSessionFactory
from .config import OpsgenieConfig
from .interfaces import HeartbeatClient


def build_heartbeat_client(config: OpsgenieConfig | None = None) -> HeartbeatClient:
    """Build the default heartbeat client for the given (or environment) config."""

    resolved_config = config or OpsgenieConfig.from_env()
    session = OpsgenieSessionFactory(resolved_config).create_http_session()
    return OpsgenieClient(config=resolved_config, session=session)
