"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from klede.config import Settings
from klede.email.service import ConsoleProvider, EmailService
from klede.gamification.seed import seed_catalog
from klede.gamification.service import WaitlistService
from klede.main import close_state, create_app, init_state
from klede.waitlist.memory_store import InMemoryStore

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "test-admin-password"


@pytest.fixture
def settings() -> Settings:
    """Isolated settings: in-memory storage, console email, known admin credentials."""
    return Settings(
        _env_file=None,
        storage_backend="memory",
        email_provider="console",
        log_format="console",
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        jwt_secret="test-secret",
    )


@pytest_asyncio.fixture
async def store() -> InMemoryStore:
    """In-memory store with the default task and reward catalogs."""
    s = InMemoryStore()
    await s.init()
    await seed_catalog(s)
    return s


@pytest.fixture
def notifier() -> MagicMock:
    """Welcome email sender that always succeeds."""
    mock = MagicMock()
    mock.send_welcome_email = AsyncMock(return_value=True)
    return mock


@pytest_asyncio.fixture
async def service(store: InMemoryStore, notifier: MagicMock) -> AsyncGenerator[WaitlistService, None]:
    svc = WaitlistService(store, notifier=notifier)
    yield svc
    await svc.wait_for_notifications()


@pytest.fixture
def email_service() -> EmailService:
    """Email service whose console provider records every message in ``outbox``."""
    return EmailService(ConsoleProvider(), shop_url="https://klede.test/shop")


@pytest_asyncio.fixture
async def app(settings: Settings, email_service: EmailService) -> AsyncGenerator[FastAPI, None]:
    """App with state built the way the lifespan builds it (ASGITransport skips lifespan)."""
    application = create_app(settings)
    await init_state(application, settings, store=InMemoryStore(), email_service=email_service)
    yield application
    await close_state(application)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_client(client: AsyncClient) -> AsyncClient:
    """Client carrying a valid admin bearer token."""
    response = await client.post(
        "/api/admin/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    client.headers["Authorization"] = f"Bearer {response.json()['access_token']}"
    return client


@pytest.fixture
def join(client: AsyncClient):
    """Sign up via the API and return the created entry."""

    async def _join(email: str, **extra: str) -> dict:
        response = await client.post("/api/waitlist", json={"email": email, **extra})
        assert response.status_code == 201, response.text
        return response.json()["entry"]

    return _join
