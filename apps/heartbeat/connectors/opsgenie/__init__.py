"""OpsGenie heartbeat connector package."""

from .client import HttpResponse, HttpStatusError, OpsgenieClient, OpsgenieSessionFactory, SimpleHttpSession
from .config import OpsgenieConfig
from .dependencies import build_heartbeat_client
from .errors import ConnectorError, ConnectorErrorCode, is_not_found, map_opsgenie_error
from .interfaces import HeartbeatClient
from .models import (
    ApiErrorRecord,
    HeartbeatIdentity,
    HeartbeatRecord,
    HeartbeatSettings,
    IntervalUnit,
    ValidationError,
    all_content_params,
    mandatory_content_params,
)

__all__ = [
    "ApiErrorRecord",
    "ConnectorError",
    "ConnectorErrorCode",
    "HeartbeatClient",
    "HeartbeatIdentity",
    "HeartbeatRecord",
    "HeartbeatSettings",
    "HttpResponse",
    "HttpStatusError",
    "IntervalUnit",
    "OpsgenieClient",
    "OpsgenieConfig",
    "OpsgenieSessionFactory",
    "SimpleHttpSession",
    "ValidationError",
    "all_content_params",
    "build_heartbeat_client",
    "is_not_found",
    "map_opsgenie_error",
    "mandatory_content_params",
]
