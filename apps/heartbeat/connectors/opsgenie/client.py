"""OpsGenie heartbeat HTTP client with shared auth/session plumbing."""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode, urljoin
from urllib.request import Request, urlopen

from .config import OpsgenieConfig
from .errors import ConnectorError, is_not_found, map_opsgenie_error
from .interfaces import HeartbeatClient
from .models import (
    HeartbeatIdentity,
    HeartbeatRecord,
    HeartbeatSettings,
    ValidationError,
    all_content_params,
)

logger = logging.getLogger(__name__)

HEARTBEATS_PATH = "/v2/heartbeats"

# Credentials travel in the Authorization header, never in the body.
_CREDENTIAL_FIELDS = frozenset({"apiKey"})

_READ_CHUNK_BYTES = 64 * 1024


@dataclass
class HttpResponse:
    status_code: int
    body: bytes

    def raise_for_status(self) -> None:
        if not 200 <= self.status_code < 300:
            raise HttpStatusError(self.status_code, self.body)

    def json(self) -> dict[str, Any]:
        if not self.body:
            return {}
        payload = json.loads(self.body.decode("utf-8"))
        if not isinstance(payload, dict):
            raise ValidationError("response body is not a JSON object")
        return payload


class HttpStatusError(Exception):
    def __init__(self, status_code: int, body: bytes):
        super().__init__(body.decode("utf-8", errors="ignore") or f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body


class SimpleHttpSession:
    """Minimal urllib-backed HTTP session abstraction.

    ``timeout`` bounds the connect and every socket read. The whole exchange,
    headers and body included, runs on a worker thread that the caller waits
    on for at most ``timeout`` seconds, so a trickling or silent server cannot
    stall the process past that deadline.
    """

    def request(self, *, method: str, url: str, data: str | None, headers: Mapping[str, str], timeout: float) -> HttpResponse:
        payload = data.encode("utf-8") if data is not None else None
        request = Request(url=url, data=payload, headers=dict(headers), method=method)
        deadline = time.monotonic() + timeout
        outcome: dict[str, Any] = {}

        def _exchange() -> None:
            try:
                outcome["response"] = self._exchange(request, timeout=timeout, deadline=deadline)
            except BaseException as exc:  # noqa: BLE001 - re-raised in the calling thread
                outcome["error"] = exc

        worker = threading.Thread(target=_exchange, name="opsgenie-http", daemon=True)
        worker.start()
        worker.join(timeout=max(0.0, deadline - time.monotonic()))
        if worker.is_alive():
            raise TimeoutError(f"{method} {url} did not complete within {timeout:g}s")
        if "error" in outcome:
            raise outcome["error"]
        return outcome["response"]

    @staticmethod
    def _exchange(request: Request, *, timeout: float, deadline: float) -> HttpResponse:
        try:
            with urlopen(request, timeout=timeout) as response:  # noqa: S310 - URL is explicit config
                return HttpResponse(status_code=response.status, body=_read_until(response, deadline))
        except HTTPError as exc:
            body = exc.read() if hasattr(exc, "read") else b""
            raise HttpStatusError(exc.code, body or b"") from exc
        except URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise TimeoutError(str(exc.reason)) from exc
            raise OSError(str(exc)) from exc


def _read_until(response: Any, deadline: float) -> bytes:
    # read1 returns whatever has arrived, so the deadline is checked per packet.
    chunks: list[bytes] = []
    while True:
        if time.monotonic() > deadline:
            raise TimeoutError("response body not received before deadline")
        chunk = response.read1(_READ_CHUNK_BYTES)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


class OpsgenieSessionFactory:
    """Creates HTTP session objects for the connector."""

    def __init__(self, config: OpsgenieConfig):
        self._config = config

    def create_http_session(self) -> SimpleHttpSession:
        return SimpleHttpSession()


class OpsgenieClient(HeartbeatClient):
    """Concrete connector implementation used behind interfaces."""

    def __init__(self, *, config: OpsgenieConfig, session: SimpleHttpSession) -> None:
        self._config = config
        self._session = session

    def build_url(self, path: str, params: Mapping[str, str] | None = None) -> str:
        url = urljoin(f"{self._config.base_url.rstrip('/')}/", path.lstrip("/"))
        if params:
            url = f"{url}?{urlencode(sorted(params.items()))}"
        return url

    def perform(
        self,
        method: str,
        path: str,
        params: Mapping[str, str] | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> HttpResponse:
        body = {key: value for key, value in (fields or {}).items() if key not in _CREDENTIAL_FIELDS}
        data = json.dumps(body, separators=(",", ":")) if body else None
        headers = {
            "Authorization": self._config.authorization,
            "Content-Type": "application/json; charset=UTF-8",
            "Accept": "application/json",
        }
        logger.debug(
            "%s %s",
            method.upper(),
            path,
            extra={"event": "request", "method": method.upper(), "path": path, "has_body": data is not None},
        )
        response = self._session.request(
            method=method.upper(),
            url=self.build_url(path, params),
            data=data,
            headers=headers,
            timeout=self._config.timeout_seconds,
        )
        response.raise_for_status()
        return response

    def perform_or_raise(
        self,
        method: str,
        path: str,
        params: Mapping[str, str] | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            return self.perform(method, path, params, fields).json()
        except Exception as exc:  # mapped to internal errors for service consumers
            raise map_opsgenie_error(exc) from exc

    def get_heartbeat(self, name: str) -> HeartbeatRecord | None:
        try:
            response = self.perform_or_raise("GET", _heartbeat_path(name))
        except ConnectorError as exc:
            if is_not_found(exc):
                logger.info("Heartbeat [%s] doesn't exist", name, extra={"event": "lookup", "heartbeat": name})
                return None
            raise
        try:
            record = HeartbeatRecord.from_exchange(response)
        except (ValueError, TypeError) as exc:
            raise map_opsgenie_error(ValidationError(str(exc))) from exc
        logger.info("Successfully retrieved heartbeat [%s]", name, extra={"event": "lookup", "heartbeat": name})
        return record

    def create_heartbeat(self, identity: HeartbeatIdentity, settings: HeartbeatSettings) -> None:
        if settings.enabled is None:
            settings = settings.with_enabled(True)
        self.perform_or_raise("POST", HEARTBEATS_PATH, fields=all_content_params(identity, settings))
        logger.info("Successfully added heartbeat [%s]", identity.name, extra={"event": "create", "heartbeat": identity.name})

    def update_heartbeat(self, identity: HeartbeatIdentity, settings: HeartbeatSettings, *, target: str | None = None) -> None:
        # The path names the resource; the body only carries configuration.
        self.perform_or_raise("PATCH", _heartbeat_path(target or identity.name), fields=settings.to_exchange_payload())

    def delete_heartbeat(self, name: str) -> None:
        self.perform_or_raise("DELETE", _heartbeat_path(name))
        logger.info("Successfully deleted heartbeat [%s]", name, extra={"event": "delete", "heartbeat": name})

    def disable_heartbeat(self, name: str) -> None:
        self.perform_or_raise("POST", f"{_heartbeat_path(name)}/disable")
        logger.info("Successfully disabled heartbeat [%s]", name, extra={"event": "disable", "heartbeat": name})

    def ping_heartbeat(self, name: str) -> None:
        self.perform_or_raise("POST", f"{_heartbeat_path(name)}/ping")
        logger.info("Successfully sent heartbeat [%s]", name, extra={"event": "ping", "heartbeat": name})


def _heartbeat_path(name: str) -> str:
    return f"{HEARTBEATS_PATH}/{quote(name, safe='')}"
