"""Tests for the HTTP/WebSocket service and connection manager."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from locator_extractor import main
from locator_extractor.exceptions import ConnectionLimitError, LaunchError, SessionActiveError
from locator_extractor.websocket import ConnectionManager


@pytest.fixture
def client():
    with TestClient(main.app) as test_client:
        yield test_client


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["session_state"] == "idle"


def test_session_status_when_idle(client):
    assert client.get("/api/v1/session").json()["state"] == "idle"


def test_scan_without_session_is_conflict(client):
    resp = client.post("/api/v1/session/scan", json={})
    assert resp.status_code == 409


def test_start_rejects_invalid_url(client):
    resp = client.post("/api/v1/session/start", json={"url": "javascript:alert(1)"})
    assert resp.status_code == 422


def test_start_while_active_is_conflict(client):
    with patch.object(main.controller, "launch", AsyncMock(side_effect=SessionActiveError("attached"))):
        resp = client.post("/api/v1/session/start", json={"url": "https://app.com"})
    assert resp.status_code == 409


def test_start_launch_failure_is_bad_gateway(client):
    error = LaunchError("Failed to launch browser session", detail="Executable doesn't exist")
    with patch.object(main.controller, "launch", AsyncMock(side_effect=error)):
        resp = client.post("/api/v1/session/start", json={"url": "https://app.com"})
    assert resp.status_code == 502
    assert "Executable doesn't exist" in resp.json()["detail"]


def test_stop_without_session(client):
    resp = client.post("/api/v1/session/stop")
    assert resp.json() == {"state": "idle", "saved": None}


def test_websocket_sends_status_and_rejects_unknown_command(client):
    with client.websocket_connect("/ws") as ws:
        assert ws.receive_json()["type"] == "status"
        ws.send_json({"type": "dance"})
        message = ws.receive_json()
    assert message["type"] == "error"
    assert message["code"] == "unknown_command"


def test_websocket_scan_without_session_reports_error(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json({"type": "scan"})
        message = ws.receive_json()
    assert message["code"] == "no_active_session"


@pytest.mark.asyncio
async def test_connection_limit():
    manager = ConnectionManager(max_connections=1)
    first, second = AsyncMock(), AsyncMock()

    await manager.connect("a", first)
    with pytest.raises(ConnectionLimitError):
        await manager.connect("b", second)

    second.close.assert_awaited_once()
    assert manager.get_connection_count() == 1


@pytest.mark.asyncio
async def test_broadcast_log_reaches_every_client():
    manager = ConnectionManager()
    sockets = [AsyncMock(), AsyncMock()]
    for i, ws in enumerate(sockets):
        await manager.connect(str(i), ws)

    await manager.broadcast_log({"level": "INFO", "message": "hi", "timestamp": "t"})

    for ws in sockets:
        ws.send_json.assert_awaited_once_with(
            {"type": "log", "level": "INFO", "message": "hi", "timestamp": "t"}
        )


@pytest.mark.asyncio
async def test_closed_socket_is_dropped_on_send():
    manager = ConnectionManager()
    ws = AsyncMock()
    ws.send_json.side_effect = RuntimeError("Unexpected ASGI message 'websocket.send'")
    await manager.connect("gone", ws)

    assert await manager.broadcast({"type": "log"}) == 0
    assert manager.get_connection_count() == 0


@pytest.mark.asyncio
async def test_send_to_unknown_client_returns_false():
    manager = ConnectionManager()
    assert await manager.send_message("missing", {"type": "log"}) is False
