"""Command-line adapter for the heartbeat lifecycle."""

__version__ = "1.0.0"
