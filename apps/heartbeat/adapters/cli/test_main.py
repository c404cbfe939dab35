from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import pytest

from adapters.cli import main as cli
from connectors.opsgenie.client import HttpResponse, OpsgenieClient, SimpleHttpSession
from connectors.opsgenie.config import OpsgenieConfig
from connectors.opsgenie.errors import ConnectorError, ConnectorErrorCode
from connectors.opsgenie.models import HeartbeatIdentity, HeartbeatRecord, HeartbeatSettings


class RecordingClient:
    def __init__(self, *, existing: HeartbeatRecord | None = None, fail_on: str | None = None) -> None:
        self.existing = existing
        self.fail_on = fail_on
        self.calls: list[str] = []

    def _record(self, call: str) -> None:
        self.calls.append(call)
        if call == self.fail_on:
            raise ConnectorError(ConnectorErrorCode.BAD_REQUEST, "HTTP 400: code=10 message=test error")

    def get_heartbeat(self, name: str) -> HeartbeatRecord | None:
        self._record("get")
        return self.existing

    def create_heartbeat(self, identity: HeartbeatIdentity, settings: HeartbeatSettings) -> None:
        self._record("create")

    def update_heartbeat(self, identity: HeartbeatIdentity, settings: HeartbeatSettings, *, target: str | None = None) -> None:
        self._record("update")

    def delete_heartbeat(self, name: str) -> None:
        self._record("delete")

    def disable_heartbeat(self, name: str) -> None:
        self._record("disable")

    def ping_heartbeat(self, name: str) -> None:
        self._record("ping")


class ClientFactory:
    def __init__(self, client: RecordingClient) -> None:
        self.client = client
        self.configs: list[OpsgenieConfig] = []

    def __call__(self, config: OpsgenieConfig) -> RecordingClient:
        self.configs.append(config)
        return self.client


def _run(argv: list[str], client: RecordingClient) -> tuple[int, ClientFactory]:
    factory = ClientFactory(client)
    code = cli.main(argv, env={}, client_factory=factory)
    return code, factory


def test_start_dispatches_and_exits_zero() -> None:
    code, factory = _run(["-k", "key", "-n", "hb", "start", "-i", "5"], RecordingClient())

    assert code == cli.EXIT_OK
    assert factory.client.calls == ["get", "create", "ping"]
    assert factory.configs[0].authorization == "GenieKey key"


def test_stop_delete_dispatches_delete() -> None:
    code, factory = _run(["-k", "key", "-n", "hb", "stop", "--delete"], RecordingClient())

    assert code == cli.EXIT_OK
    assert factory.client.calls == ["delete"]


def test_send_dispatches_ping() -> None:
    code, factory = _run(["-k", "key", "-n", "hb", "send"], RecordingClient())

    assert code == cli.EXIT_OK
    assert factory.client.calls == ["ping"]


def test_configuration_error_exits_before_any_client_is_built(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR):
        code, factory = _run(["-n", "hb", "send"], RecordingClient())

    assert code == cli.EXIT_CONFIGURATION
    assert factory.configs == []
    assert "[apiKey] and [name] are mandatory" in caplog.text


def test_remote_failure_exits_non_zero_without_further_calls(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR):
        code, factory = _run(["-k", "key", "-n", "hb", "start"], RecordingClient(fail_on="get"))

    assert code == cli.EXIT_FAILURE
    assert factory.client.calls == ["get"]
    assert "code=10 message=test error" in caplog.text


def test_send_loop_failure_ends_process_with_failure() -> None:
    code, factory = _run(["-k", "key", "-n", "hb", "sendLoop", "-l", "10ms"], RecordingClient(fail_on="ping"))

    assert code == cli.EXIT_FAILURE
    assert factory.client.calls == ["ping"]


def test_start_loop_provisions_then_fails_on_first_tick() -> None:
    client = RecordingClient(existing=HeartbeatRecord(name="hb", enabled=False))
    pings = {"count": 0}
    original = client.ping_heartbeat

    def _ping(name: str) -> None:
        pings["count"] += 1
        if pings["count"] > 1:
            raise ConnectorError(ConnectorErrorCode.NETWORK_ERROR, "connection reset")
        original(name)

    client.ping_heartbeat = _ping  # type: ignore[method-assign]

    code, factory = _run(["-k", "key", "-n", "hb", "startLoop", "-l", "10ms"], client)

    assert code == cli.EXIT_FAILURE
    assert factory.client.calls == ["get", "update", "ping"]
    assert pings["count"] == 2


def test_invalid_log_level_is_configuration_error() -> None:
    code, factory = _run(["-k", "key", "-n", "hb", "--log-level", "chatty", "send"], RecordingClient())

    assert code == cli.EXIT_CONFIGURATION
    assert factory.configs == []


class ScriptedSession(SimpleHttpSession):
    def __init__(self, *responses: tuple[int, dict[str, Any]]) -> None:
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def request(self, *, method: str, url: str, data: str | None, headers: Mapping[str, str], timeout: float) -> HttpResponse:
        self.requests.append({"method": method, "url": url, "data": data})
        status, payload = self.responses.pop(0) if self.responses else (202, {})
        return HttpResponse(status_code=status, body=json.dumps(payload).encode("utf-8"))


def _run_with_session(argv: list[str], session: ScriptedSession) -> int:
    return cli.main(argv, env={}, client_factory=lambda config: OpsgenieClient(config=config, session=session))


def test_start_no_enabled_creates_absent_heartbeat_disabled() -> None:
    session = ScriptedSession((404, {"message": "Heartbeat not found"}))

    code = _run_with_session(["-k", "key", "-n", "hb", "start", "--no-enabled"], session)

    assert code == cli.EXIT_OK
    assert [request["method"] for request in session.requests] == ["GET", "POST", "POST"]
    assert json.loads(session.requests[1]["data"]) == {"name": "hb", "enabled": False}
    assert session.requests[2]["url"].endswith("/v2/heartbeats/hb/ping")


def test_start_on_existing_heartbeat_logs_one_update_line(caplog: pytest.LogCaptureFixture) -> None:
    session = ScriptedSession((200, {"data": {"name": "hb", "enabled": False}}))

    with caplog.at_level(logging.INFO):
        code = _run_with_session(["-k", "key", "-n", "hb", "start", "--no-enabled"], session)

    assert code == cli.EXIT_OK
    assert json.loads(session.requests[1]["data"]) == {"enabled": True}
    assert [record.getMessage() for record in caplog.records if "updated" in record.getMessage()] == [
        "Successfully enabled and updated heartbeat [hb]"
    ]


def test_failed_loop_tick_is_logged_once(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        code, _ = _run(["-k", "key", "-n", "hb", "sendLoop", "-l", "10ms"], RecordingClient(fail_on="ping"))

    assert code == cli.EXIT_FAILURE
    errors = [record for record in caplog.records if record.levelno >= logging.ERROR]
    assert len(errors) == 1
    assert errors[0].getMessage().startswith("Failed to sendLoop heartbeat [hb]")
