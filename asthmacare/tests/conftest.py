"""Pytest configuration and fixtures."""

import random
from typing import AsyncGenerator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from asthmacare.app.db.base import Base
from asthmacare.app.main import app
from asthmacare.app.services.air_quality import AirQualitySimulator
from asthmacare.app.services.app_state import AppState, get_app_state
from asthmacare.app.services.auth_gate import AuthGate
from asthmacare.app.services.database import Database
from asthmacare.app.services.identity import IdentityProvider
from asthmacare.app.services.report_analysis import ReportAnalyzer
from asthmacare.app.services.storage import LocalObjectStorage
from asthmacare.app.websocket.manager import ConnectionManager

TEST_EMAIL = "patient@example.com"
TEST_PASSWORD = "Breathe2024"
TEST_NAME = "Asha Patel"


class RecordingConnectionManager(ConnectionManager):
    """Connection manager that also keeps every event sent to a user."""

    def __init__(self):
        super().__init__()
        self.sent: list[tuple[str, dict]] = []

    async def send_to_user(self, user_id, message):
        self.sent.append((str(user_id), message))
        await super().send_to_user(user_id, message)

    def events_of_type(self, event_type: str) -> list[dict]:
        return [m["data"] for _, m in self.sent if m["type"] == event_type]


@pytest.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Create a session factory over a fresh database file.

    Background analysis tasks write while requests are still running, so
    every session gets its own connection instead of sharing one in-memory
    database.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def storage(tmp_path) -> LocalObjectStorage:
    """Bucket store rooted in a temporary directory."""
    return LocalObjectStorage(root=tmp_path / "storage", public_url="/storage")


@pytest.fixture
def analyzer() -> ReportAnalyzer:
    """Analyzer without simulated latency."""
    return ReportAnalyzer(delay_seconds=0)


@pytest.fixture
def database(session_factory) -> Database:
    return Database(session_factory)


@pytest.fixture
def identity(session_factory) -> IdentityProvider:
    return IdentityProvider(session_factory)


@pytest.fixture
async def signed_in_gate(identity) -> AuthGate:
    """Auth gate with an active session for the test user."""
    await identity.sign_up(TEST_EMAIL, TEST_PASSWORD, TEST_NAME)
    gate = AuthGate(identity)
    result = await gate.sign_in(TEST_EMAIL, TEST_PASSWORD)
    assert result.success
    return gate


@pytest.fixture
async def app_state(session_factory, storage, analyzer) -> AsyncGenerator[AppState, None]:
    """Application state wired to the test database and a recording connection manager."""
    state = AppState(
        session_factory=session_factory,
        storage=storage,
        analyzer=analyzer,
        air_quality=AirQualitySimulator(delay_seconds=0, rng=random.Random(42)),
        connections=RecordingConnectionManager(),
    )
    yield state
    state.shutdown()


@pytest.fixture(scope="function")
async def test_client_with_db(app_state) -> AsyncGenerator[AsyncClient, None]:
    """
    Create test client backed by the per-test database.

    Overrides the app state dependency so every request uses the test
    database, storage directory and connection manager.
    """
    app.dependency_overrides[get_app_state] = lambda: app_state

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def auth_headers(test_client_with_db) -> dict[str, str]:
    """Register the test user, sign in and return the bearer header."""
    await test_client_with_db.post(
        "/api/auth/signup",
        json={
            "full_name": TEST_NAME,
            "email": TEST_EMAIL,
            "password": TEST_PASSWORD,
            "confirm_password": TEST_PASSWORD,
            "agree_terms": True,
        },
    )
    response = await test_client_with_db.post(
        "/api/auth/signin",
        json={"email": TEST_EMAIL, "password": TEST_PASSWORD},
    )
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}
