"""Unit tests for application wiring and middleware."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from corsrelay.config.settings import RelaySettings
from corsrelay.logging_config import JsonFormatter, current_request_id
from corsrelay.main import _state, create_app


@pytest.fixture
def app_settings(tmp_path: Path) -> RelaySettings:
    relays = tmp_path / "relays.yaml"
    relays.write_text(
        "relays:\n"
        "  - endpoint: https://one.example.net\n"
        "    priority: 1\n"
        "    kind: path\n"
    )
    return RelaySettings(relays_path=str(relays), health_check_interval_seconds=3600)


class TestLifespan:
    def test_routes_mounted_and_state_populated(self, app_settings: RelaySettings):
        with TestClient(create_app(app_settings)) as client:
            response = client.get("/relays")
            assert response.status_code == 200
            assert response.json()["data"]["relays"][0]["endpoint"] == "https://one.example.net"
            assert _state["registry"] is not None
            assert set(_state) == {"settings", "registry", "selector"}
        assert _state == {}

    def test_request_id_header(self, app_settings: RelaySettings):
        with TestClient(create_app(app_settings)) as client:
            generated = client.get("/health")
            echoed = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert generated.headers["X-Request-ID"]
        assert echoed.headers["X-Request-ID"] == "req-123"


class _JsonCapture(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.setFormatter(JsonFormatter())
        self.entries: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.entries.append(json.loads(self.format(record)))


class TestRequestIdLogging:
    def test_log_lines_carry_request_id(self, app_settings: RelaySettings):
        middleware_logger = logging.getLogger("corsrelay.middleware.request_id")
        capture = _JsonCapture()
        previous_level = middleware_logger.level
        middleware_logger.addHandler(capture)
        middleware_logger.setLevel(logging.DEBUG)
        try:
            with TestClient(create_app(app_settings)) as client:
                client.get("/health", headers={"X-Request-ID": "req-456"})
        finally:
            middleware_logger.removeHandler(capture)
            middleware_logger.setLevel(previous_level)

        entry = capture.entries[-1]
        assert entry["request_id"] == "req-456"
        assert entry["status_code"] == 200
        assert current_request_id.get() is None

    def test_explicit_request_id_wins(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
        record.request_id = "from-record"  # type: ignore[attr-defined]
        token = current_request_id.set("from-context")
        try:
            entry = json.loads(JsonFormatter().format(record))
        finally:
            current_request_id.reset(token)
        assert entry["request_id"] == "from-record"


class TestServiceKeyAuth:
    def test_auth_disabled_without_key(self, app_settings: RelaySettings):
        with TestClient(create_app(app_settings)) as client:
            assert client.post("/relays/reset").status_code == 200

    def test_requires_key_when_configured(self, app_settings: RelaySettings):
        settings = app_settings.model_copy(update={"service_key": "s3cret"})
        with TestClient(create_app(settings)) as client:
            assert client.get("/health").status_code == 200
            assert client.post("/relays/reset").status_code == 401
            assert client.post(
                "/relays/reset", headers={"X-Service-Key": "wrong"}
            ).status_code == 401
            assert client.post(
                "/relays/reset", headers={"X-Service-Key": "s3cret"}
            ).status_code == 200
