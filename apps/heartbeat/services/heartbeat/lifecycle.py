"""Heartbeat lifecycle orchestration on top of the OpsGenie connector."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from connectors.opsgenie.interfaces import HeartbeatClient
from connectors.opsgenie.models import HeartbeatIdentity, HeartbeatSettings

from .loop import PeriodicSender

logger = logging.getLogger(__name__)


class StartOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class HeartbeatCommand:
    """Everything one invocation needs, built once at startup."""

    identity: HeartbeatIdentity
    settings: HeartbeatSettings = HeartbeatSettings()
    loop_interval_seconds: float = 60.0
    delete: bool = False


class HeartbeatLifecycle:
    """Drives a heartbeat through create/update, ping, disable and delete.

    Every call blocks on the remote service and every failure propagates; the
    only non-fatal branch is a lookup reporting that the heartbeat is absent.
    """

    def __init__(self, client: HeartbeatClient) -> None:
        self._client = client

    def start(self, identity: HeartbeatIdentity, settings: HeartbeatSettings) -> StartOutcome:
        existing = self._client.get_heartbeat(identity.name)
        if existing is None:
            self._client.create_heartbeat(identity, settings)
            outcome = StartOutcome.CREATED
        else:
            self._client.update_heartbeat(identity, settings.with_enabled(True), target=existing.name)
            logger.info(
                "Successfully enabled and updated heartbeat [%s]",
                identity.name,
                extra={"event": "start", "heartbeat": identity.name, "was_enabled": existing.enabled},
            )
            outcome = StartOutcome.UPDATED
        self.send(identity)
        return outcome

    def stop(self, identity: HeartbeatIdentity, *, delete: bool = False) -> None:
        if delete:
            self._client.delete_heartbeat(identity.name)
        else:
            self._client.disable_heartbeat(identity.name)

    def send(self, identity: HeartbeatIdentity) -> None:
        self._client.ping_heartbeat(identity.name)

    def start_loop(
        self,
        identity: HeartbeatIdentity,
        settings: HeartbeatSettings,
        loop_interval_seconds: float,
    ) -> PeriodicSender:
        self.start(identity, settings)
        return self.send_loop(identity, loop_interval_seconds)

    def send_loop(self, identity: HeartbeatIdentity, loop_interval_seconds: float) -> PeriodicSender:
        sender = PeriodicSender(
            lambda: self.send(identity),
            loop_interval_seconds,
            name=f"heartbeat-sender[{identity.name}]",
        )
        return sender.start()
