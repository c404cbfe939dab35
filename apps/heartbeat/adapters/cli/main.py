"""Process entry point: logging setup, dispatch and exit status."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Callable

from connectors.opsgenie.config import OpsgenieConfig
from connectors.opsgenie.dependencies import build_heartbeat_client
from connectors.opsgenie.errors import ConnectorError
from connectors.opsgenie.interfaces import HeartbeatClient
from services.heartbeat.lifecycle import HeartbeatLifecycle
from services.heartbeat.loop import PeriodicSender

from . import __version__
from .arguments import ConfigurationError, Invocation, parse_invocation

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2
EXIT_INTERRUPTED = 130

ClientFactory = Callable[[OpsgenieConfig], HeartbeatClient]


def configure_logging(level: str = "INFO") -> None:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"unknown log level: {level}")
    logging.basicConfig(level=resolved, format=LOG_FORMAT)


def run(invocation: Invocation, client_factory: ClientFactory = build_heartbeat_client) -> int:
    command = invocation.heartbeat
    lifecycle = HeartbeatLifecycle(client_factory(invocation.connector))

    if invocation.command == "start":
        lifecycle.start(command.identity, command.settings)
        return EXIT_OK
    if invocation.command == "stop":
        lifecycle.stop(command.identity, delete=command.delete)
        return EXIT_OK
    if invocation.command == "send":
        lifecycle.send(command.identity)
        return EXIT_OK
    if invocation.command == "startLoop":
        return _block_on(lifecycle.start_loop(command.identity, command.settings, command.loop_interval_seconds))
    if invocation.command == "sendLoop":
        return _block_on(lifecycle.send_loop(command.identity, command.loop_interval_seconds))

    raise ConfigurationError(f"unknown command: {invocation.command}")


def _block_on(sender: PeriodicSender) -> int:
    try:
        sender.wait()
    except KeyboardInterrupt:
        sender.stop()
        logger.info("Interrupted, stopped sending heartbeats", extra={"event": "interrupted", "ticks": sender.ticks})
        return EXIT_INTERRUPTED
    return EXIT_OK


def main(
    argv: Sequence[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    client_factory: ClientFactory = build_heartbeat_client,
) -> int:
    try:
        invocation = parse_invocation(argv, env, version=__version__)
        configure_logging(invocation.log_level)
    except ConfigurationError as exc:
        configure_logging()
        logger.error("%s", exc, extra={"event": "configuration_error"})
        return EXIT_CONFIGURATION

    try:
        return run(invocation, client_factory)
    except ConfigurationError as exc:
        logger.error("%s", exc, extra={"event": "configuration_error"})
        return EXIT_CONFIGURATION
    except ConnectorError as exc:
        logger.error(
            "Failed to %s heartbeat [%s]: %s",
            invocation.command,
            invocation.heartbeat.identity.name,
            exc,
            extra={"event": "failure", "code": exc.code.value, "command": invocation.command},
        )
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.info("Interrupted", extra={"event": "interrupted"})
        return EXIT_INTERRUPTED
