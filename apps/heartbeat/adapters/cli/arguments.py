"""Command-line surface: parser, validation and conversion into commands."""

from __future__ import annotations

import argparse
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from os import environ

from connectors.opsgenie.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS, OpsgenieConfig
from connectors.opsgenie.models import HeartbeatIdentity, HeartbeatSettings, IntervalUnit
from services.heartbeat.lifecycle import HeartbeatCommand

MANDATORY_FLAGS = "[apiKey] and [name] are mandatory"
INTERVAL_UNIT_WRONG = "[intervalUnit] can only be one of the following: minutes, hours or days"

DEFAULT_LOOP_INTERVAL = "60s"

COMMANDS = ("start", "startLoop", "stop", "send", "sendLoop")

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


class ConfigurationError(ValueError):
    """Raised when command-line input is missing or invalid."""


@dataclass(frozen=True)
class Invocation:
    command: str
    heartbeat: HeartbeatCommand
    connector: OpsgenieConfig
    log_level: str = "INFO"


def parse_duration(value: str) -> float:
    """Parse ``90s``/``1m30s``/``1.5h``/``250ms`` (or bare seconds) into seconds."""

    text = value.strip()
    if re.fullmatch(r"\d+(?:\.\d*)?|\.\d+", text):
        seconds = float(text)
    else:
        position = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != position:
                break
            seconds += float(match.group(1)) * _DURATION_SECONDS[match.group(2)]
            position = match.end()
        if not text or position != len(text):
            raise ConfigurationError(f"[loopInterval] is not a valid duration: {value!r}")
    if seconds <= 0:
        raise ConfigurationError("[loopInterval] must be a positive duration")
    return seconds


def _identity_flags(default: object) -> argparse.ArgumentParser:
    shared = argparse.ArgumentParser(add_help=False)
    shared.add_argument("--apiKey", "-k", dest="api_key", default=default, help="API key")
    shared.add_argument("--name", "-n", default=default, help="heartbeat name")
    return shared


def _settings_flags() -> argparse.ArgumentParser:
    settings = argparse.ArgumentParser(add_help=False)
    settings.add_argument("--description", "-d", default=None, help="Heartbeat description")
    settings.add_argument(
        "--interval",
        "-i",
        type=int,
        default=None,
        help="Amount of time OpsGenie waits for a send request before creating an alert",
    )
    settings.add_argument("--intervalUnit", "-u", dest="interval_unit", default=None, help="[minutes, hours or days]")
    settings.add_argument(
        "--enabled",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Create the heartbeat enabled or disabled (default: enabled). An existing heartbeat is always enabled",
    )
    return settings


def _loop_flags() -> argparse.ArgumentParser:
    loop = argparse.ArgumentParser(add_help=False)
    loop.add_argument(
        "--loopInterval",
        "-l",
        dest="loop_interval",
        default=DEFAULT_LOOP_INTERVAL,
        help="Loop interval as a duration, e.g. 30s, 5m, 1h30m (default: %(default)s)",
    )
    return loop


def build_parser(prog: str = "opsgenie-heartbeat", version: str = "") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Send heartbeats to OpsGenie",
        parents=[_identity_flags(default=None)],
    )
    parser.add_argument("--apiUrl", dest="api_url", default=None, help=f"OpsGenie API url (default: {DEFAULT_BASE_URL})")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=f"HTTP timeout in seconds (default: {DEFAULT_TIMEOUT_SECONDS:g})",
    )
    parser.add_argument("--log-level", dest="log_level", default="INFO", help="Logging level (default: %(default)s)")
    if version:
        parser.add_argument("--version", action="version", version=f"%(prog)s {version}")

    # Identity flags are accepted after the subcommand too; SUPPRESS keeps the
    # subparser from overwriting values given before it.
    identity = _identity_flags(default=argparse.SUPPRESS)
    sub = parser.add_subparsers(dest="command", required=True, metavar="command")

    sub.add_parser(
        "start",
        parents=[identity, _settings_flags()],
        help="Adds a new heartbeat and then sends a heartbeat",
        description=(
            "Adds a new heartbeat to OpsGenie with the configuration from the given flags. If the heartbeat "
            "with the name specified in --name exists, updates the heartbeat accordingly and enables it. It "
            "also sends a heartbeat message to activate the heartbeat."
        ),
    )
    sub.add_parser(
        "startLoop",
        parents=[identity, _settings_flags(), _loop_flags()],
        help="Same as start and sendLoop",
        description="Combines start and sendLoop",
    )
    p_stop = sub.add_parser(
        "stop",
        parents=[identity],
        help="Disables the heartbeat",
        description=(
            "Disables the heartbeat specified with --name, or deletes it if --delete is given. This can be "
            "used to end the heartbeat monitoring that was previously started."
        ),
    )
    p_stop.add_argument("--delete", action="store_true", help="Delete the heartbeat")
    sub.add_parser(
        "send",
        parents=[identity],
        help="Sends a heartbeat",
        description="Sends a heartbeat message to reactivate the heartbeat specified with --name.",
    )
    sub.add_parser(
        "sendLoop",
        parents=[identity, _loop_flags()],
        help="Keep sending",
        description="Sends a continuous heartbeat message to reactivate the heartbeat specified with --name.",
    )
    return parser


def build_invocation(args: argparse.Namespace, env: Mapping[str, str] | None = None) -> Invocation:
    """Validate parsed arguments and freeze them into an ``Invocation``."""

    env = environ if env is None else env
    api_key = (args.api_key or env.get("OPSGENIE_API_KEY", "")).strip()
    name = (args.name or "").strip()
    if not api_key or not name:
        raise ConfigurationError(MANDATORY_FLAGS)

    interval_unit = getattr(args, "interval_unit", None)
    if interval_unit:
        try:
            interval_unit = IntervalUnit(interval_unit)
        except ValueError:
            raise ConfigurationError(INTERVAL_UNIT_WRONG) from None

    interval = getattr(args, "interval", None)
    if interval is not None and interval <= 0:
        raise ConfigurationError("[interval] must be a positive integer")

    loop_interval = getattr(args, "loop_interval", None)
    if loop_interval is None:
        loop_interval = DEFAULT_LOOP_INTERVAL
    loop_interval_seconds = parse_duration(loop_interval)

    try:
        connector = OpsgenieConfig(
            base_url=args.api_url or env.get("OPSGENIE_API_URL", DEFAULT_BASE_URL),
            api_key=api_key,
            timeout_seconds=args.timeout if args.timeout is not None else float(
                env.get("OPSGENIE_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
            ),
        )
        heartbeat = HeartbeatCommand(
            identity=HeartbeatIdentity(api_key=api_key, name=name),
            settings=HeartbeatSettings(
                description=getattr(args, "description", None) or None,
                interval=interval,
                interval_unit=interval_unit or None,
                enabled=getattr(args, "enabled", None),
            ),
            loop_interval_seconds=loop_interval_seconds,
            delete=bool(getattr(args, "delete", False)),
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    return Invocation(command=args.command, heartbeat=heartbeat, connector=connector, log_level=args.log_level)


def parse_invocation(argv: Sequence[str] | None = None, env: Mapping[str, str] | None = None, *, version: str = "") -> Invocation:
    parser = build_parser(version=version)
    return build_invocation(parser.parse_args(argv), env)
