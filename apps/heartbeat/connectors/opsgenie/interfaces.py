"""Interfaces for OpsGenie connector capabilities."""

from __future__ import annotations

from typing import Protocol

from .models import HeartbeatIdentity, HeartbeatRecord, HeartbeatSettings


class HeartbeatClient(Protocol):
    """Manages heartbeat resources on the remote service."""

    def get_heartbeat(self, name: str) -> HeartbeatRecord | None:
        """Look up a heartbeat by name; ``None`` when it does not exist."""

    def create_heartbeat(self, identity: HeartbeatIdentity, settings: HeartbeatSettings) -> None:
        """Create a new heartbeat, enabled unless the settings say otherwise."""

    def update_heartbeat(self, identity: HeartbeatIdentity, settings: HeartbeatSettings, *, target: str | None = None) -> None:
        """Re-submit heartbeat configuration to the resource named ``target``."""

    def delete_heartbeat(self, name: str) -> None:
        """Permanently remove a heartbeat."""

    def disable_heartbeat(self, name: str) -> None:
        """Disable a heartbeat without removing its configuration."""

    def ping_heartbeat(self, name: str) -> None:
        """Renew the heartbeat's expiry timer."""
