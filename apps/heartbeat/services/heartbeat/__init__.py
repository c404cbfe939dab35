"""Heartbeat lifecycle services."""

from .lifecycle import HeartbeatCommand, HeartbeatLifecycle, StartOutcome
from .loop import PeriodicSender

__all__ = ["HeartbeatCommand", "HeartbeatLifecycle", "PeriodicSender", "StartOutcome"]
