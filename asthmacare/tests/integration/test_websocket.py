"""Integration tests for WebSocket functionality."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from asthmacare.app.db.base import Base
from asthmacare.app.main import app
from asthmacare.app.services.air_quality import AirQualitySimulator
from asthmacare.app.services.app_state import AppState, get_app_state
from asthmacare.app.services.report_analysis import ReportAnalyzer
from asthmacare.app.services.storage import LocalObjectStorage
from asthmacare.app.websocket.manager import ConnectionManager

from conftest import TEST_EMAIL, TEST_NAME, TEST_PASSWORD


@pytest.fixture(scope="function")
def ws_client(tmp_path):
    """
    Create sync test client for WebSocket testing.

    WebSocket tests must use the synchronous TestClient; the database is
    created on the client's own event loop.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ws.db'}")
    state = AppState(
        session_factory=async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False),
        storage=LocalObjectStorage(root=tmp_path / "storage", public_url="/storage"),
        analyzer=ReportAnalyzer(delay_seconds=0),
        air_quality=AirQualitySimulator(delay_seconds=0),
        connections=ConnectionManager(),
    )

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    app.dependency_overrides[get_app_state] = lambda: state
    with TestClient(app) as client:
        client.portal.call(create_tables)
        yield client, state
        state.shutdown()
        client.portal.call(engine.dispose)
    app.dependency_overrides.clear()


def sign_in(client) -> str:
    client.post(
        "/api/auth/signup",
        json={
            "full_name": TEST_NAME,
            "email": TEST_EMAIL,
            "password": TEST_PASSWORD,
            "confirm_password": TEST_PASSWORD,
            "agree_terms": True,
        },
    )
    response = client.post("/api/auth/signin", json={"email": TEST_EMAIL, "password": TEST_PASSWORD})
    return response.json()["data"]["access_token"]


def receive_until(websocket, predicate, limit=20) -> list[dict]:
    """Read messages until one satisfies ``predicate``."""
    seen = []
    for _ in range(limit):
        message = websocket.receive_json()
        seen.append(message)
        if predicate(message):
            return seen
    raise AssertionError(f"Expected message not received: {seen}")


class TestWebSocketConnection:
    """Test cases for WebSocket connection management."""

    def test_rejects_invalid_token(self, ws_client):
        client, _ = ws_client

        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/ws?token=garbage"):
                pass

        assert exc_info.value.code == 1008

    def test_connection_registered(self, ws_client):
        """Test a connection is kept under the user's id."""
        client, state = ws_client
        token = sign_in(client)
        user_id = next(iter(state.contexts.values())).user.id

        with client.websocket_connect(f"/ws?token={token}") as websocket:
            websocket.send_text("ping")
            websocket.receive_json()
            assert state.connections.connection_count(user_id) == 1

    def test_ping_pong(self, ws_client):
        """Test WebSocket ping/pong heartbeat."""
        client, _ = ws_client
        token = sign_in(client)

        with client.websocket_connect(f"/ws?token={token}") as websocket:
            websocket.send_text("ping")
            assert websocket.receive_json() == {"type": "pong"}


class TestWebSocketEvents:
    """Test cases for events pushed to the signed-in user."""

    def test_upload_and_analysis_events(self, ws_client):
        """Test an upload is followed by progress, notification and completion events."""
        client, _ = ws_client
        token = sign_in(client)
        headers = {"Authorization": f"Bearer {token}"}

        with client.websocket_connect(f"/ws?token={token}") as websocket:
            response = client.post(
                "/api/reports",
                headers=headers,
                files=[("files", ("peak.pdf", b"%PDF-1.4", "application/pdf"))],
                data={"report_text": "peak flow diary"},
            )
            report_id = response.json()["uploaded"][0]["id"]

            messages = receive_until(
                websocket,
                lambda m: m["type"] == "report_updated" and m["data"]["status"] == "completed",
            )

        types = [m["type"] for m in messages]
        assert types[0] == "report_added"
        assert messages[0]["data"]["id"] == report_id
        assert "upload_progress" in types
        completed = messages[-1]["data"]
        assert completed["id"] == report_id
        assert completed["analysis_result"]["findings"] == [
            "Pulmonary function testing results available"
        ]

        notifications = [m["data"] for m in messages if m["type"] == "notification"]
        assert {"level", "message", "dismiss_after"} <= set(notifications[0])

    def test_sign_out_event(self, ws_client):
        """Test signing out tells open connections the session ended."""
        client, _ = ws_client
        token = sign_in(client)

        with client.websocket_connect(f"/ws?token={token}") as websocket:
            client.post("/api/auth/signout", headers={"Authorization": f"Bearer {token}"})

            messages = receive_until(websocket, lambda m: m["type"] == "session_changed")

        assert messages[-1]["data"] == {"signed_in": False}
