"""Shared test fixtures and configuration."""
import asyncio
import json
import os
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ.setdefault("RETELL_API_KEY", "test-retell-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_123")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("DASHBOARD_PASSWORD", "testpass123")

from app.main import app
from app.db.database import Base
from app.core.config import Settings
from app.core.dependencies import (
    get_billing_persistence,
    get_billing_reconciler,
    get_retell_client,
)
from app.services.billing.stripe_client import StripeClient
from app.services.persistence.billing import BillingPersistenceService
from app.services.retell.client import RetellClient
from app.services.web_call.platform import (
    CallTransport,
    DeviceAccessError,
    MediaPlatform,
    PermissionState,
    TransportConnection,
)


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeProviderAPI:
    """Scripted HTTP provider backed by httpx.MockTransport."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, json_body: Any = None, text: str = None):
        self.routes[(method, path)] = (status, json_body, text)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, text=f"no route for {request.method} {request.url.path}")
        status, json_body, text = route
        if isinstance(json_body, Exception):
            raise json_body
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=json_body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)

    def last_form(self) -> Dict[str, str]:
        return dict(httpx.QueryParams(self.requests[-1].content.decode()))


@pytest.fixture
def retell_api():
    """Fake Retell API."""
    return FakeProviderAPI()


@pytest.fixture
def stripe_api():
    """Fake Stripe API."""
    return FakeProviderAPI()


@pytest.fixture
def retell_client(retell_api):
    return RetellClient(
        api_key="test-retell-key",
        base_url="https://api.retellai.test",
        transport=retell_api.transport,
    )


@pytest.fixture
def stripe_client(stripe_api):
    return StripeClient(
        secret_key="sk_test_123",
        base_url="https://api.stripe.test",
        transport=stripe_api.transport,
    )


@pytest.fixture
def test_settings():
    """Override settings for testing."""
    return Settings(
        retell_api_key="test-retell-key",
        stripe_secret_key="sk_test_123",
        database_url=TEST_DATABASE_URL,
        dashboard_password="testpass123",
    )


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def billing_persistence(test_db, tmp_path):
    """Billing persistence with no seed file, so built-in defaults apply."""
    return BillingPersistenceService(test_db, settings_file=str(tmp_path / "missing.yaml"))


@pytest.fixture
def test_client(retell_client, test_settings, monkeypatch):
    """Create FastAPI test client with provider overrides."""
    app.dependency_overrides[get_retell_client] = lambda: retell_client

    monkeypatch.setattr("app.core.config.settings", test_settings)
    monkeypatch.setattr("app.api.auth.settings", test_settings)
    monkeypatch.setattr("app.api.billing.settings", test_settings)

    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()


@pytest.fixture
def override_billing(test_client):
    """Install billing doubles; returns a setter taking (reconciler, persistence)."""
    def _install(reconciler=None, persistence=None):
        if reconciler is not None:
            app.dependency_overrides[get_billing_reconciler] = lambda: reconciler
        if persistence is not None:
            app.dependency_overrides[get_billing_persistence] = lambda: persistence
    return _install


@pytest.fixture
def authenticated_client(test_client, test_settings, clean_auth_sessions):
    """Create test client with valid session cookie."""
    response = test_client.post(
        "/api/auth/login",
        json={"password": test_settings.dashboard_password, "account_id": "acct_1"},
    )
    assert response.status_code == 200

    return test_client


@pytest.fixture
def clean_auth_sessions():
    """Clean up authentication sessions before and after tests."""
    from app.api import auth
    auth._sessions.clear()
    yield
    auth._sessions.clear()


class FakeMediaPlatform(MediaPlatform):
    """Microphone double recording every acquisition."""

    def __init__(
        self,
        has_media: bool = True,
        secure: bool = True,
        permission: PermissionState = PermissionState.GRANTED,
        open_error: Optional[DeviceAccessError] = None,
    ):
        self.has_media = has_media
        self.secure = secure
        self.permission = permission
        self.open_error = open_error
        self.open_calls = 0
        self.held = 0

    def has_media_devices(self) -> bool:
        return self.has_media

    def is_secure_context(self) -> bool:
        return self.secure

    async def query_microphone_permission(self) -> PermissionState:
        return self.permission

    @asynccontextmanager
    async def _audio_input(self):
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error
        self.held += 1
        try:
            yield object()
        finally:
            self.held -= 1

    def open_audio_input(self, device_id: str = "default"):
        return self._audio_input()


class FakeConnection(TransportConnection):
    """Transport connection that replays scripted events on start()."""

    def __init__(
        self,
        script: List[Tuple[str, tuple]],
        start_error: Optional[Exception] = None,
        start_gate: Optional[asyncio.Event] = None,
    ):
        self.script = script
        self.start_error = start_error
        self.start_gate = start_gate
        self.callbacks: Dict[str, Callable] = {}
        self.payload: Optional[Dict[str, Any]] = None
        self.stop_calls = 0
        self.mic_held_at_start: Optional[int] = None

    def on(self, event_name: str, callback: Callable) -> None:
        self.callbacks[event_name] = callback

    def emit(self, event_name: str, *args) -> None:
        self.callbacks[event_name](*args)

    async def start(self, payload: Dict[str, Any]) -> None:
        self.payload = payload
        if self.start_gate is not None:
            await self.start_gate.wait()
        if self.start_error is not None:
            raise self.start_error
        for event_name, args in self.script:
            self.emit(event_name, *args)

    def stop(self) -> None:
        self.stop_calls += 1


class FakeTransport(CallTransport):
    """Creates FakeConnections; ``scripts`` are consumed one per connection."""

    def __init__(self, platform: Optional[FakeMediaPlatform] = None):
        self.platform = platform
        self.scripts: List[List[Tuple[str, tuple]]] = []
        self.start_error: Optional[Exception] = None
        self.start_gate: Optional[asyncio.Event] = None
        self.connections: List[FakeConnection] = []

    def create_connection(self) -> FakeConnection:
        script = self.scripts.pop(0) if self.scripts else []
        connection = FakeConnection(script, self.start_error, self.start_gate)
        if self.platform is not None:
            connection.mic_held_at_start = self.platform.held
        self.connections.append(connection)
        return connection


class FakeTransportError:
    """Error object shaped like the SDK's error payload."""

    def __init__(self, message: str):
        self.message = message


@pytest.fixture
def media_platform():
    return FakeMediaPlatform()


@pytest.fixture
def call_transport(media_platform):
    return FakeTransport(media_platform)
