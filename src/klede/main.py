"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from klede.admin.router import router as admin_router
from klede.config import Settings, get_settings
from klede.email.service import EmailService, create_email_service
from klede.gamification.router import router as waitlist_router
from klede.gamification.seed import seed_catalog
from klede.gamification.service import WaitlistService
from klede.health.router import router as health_router
from klede.middleware import setup_middleware
from klede.waitlist.factory import create_store
from klede.waitlist.store import EntryStore

logger = structlog.get_logger()


async def init_state(
    app: FastAPI,
    settings: Settings,
    *,
    store: EntryStore | None = None,
    email_service: EmailService | None = None,
) -> None:
    """Build the store and services and attach them to ``app.state``.

    ``store`` and ``email_service`` override the configured ones.
    """
    store = store or create_store(settings)
    await store.init()
    tasks_seeded, rewards_seeded = await seed_catalog(store)

    email_service = email_service or create_email_service(settings)

    app.state.settings = settings
    app.state.store = store
    app.state.email_service = email_service
    app.state.waitlist_service = WaitlistService(
        store,
        notifier=email_service,
        leaderboard_size=settings.leaderboard_size,
    )
    logger.info(
        "app_state_ready",
        storage_backend=type(store).__name__,
        tasks_seeded=tasks_seeded,
        rewards_seeded=rewards_seeded,
    )


async def close_state(app: FastAPI) -> None:
    """Drain pending welcome emails and close the store."""
    service: WaitlistService | None = getattr(app.state, "waitlist_service", None)
    if service is not None:
        await service.wait_for_notifications()
    store: EntryStore | None = getattr(app.state, "store", None)
    if store is not None:
        await store.close()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    await init_state(app, app.state.settings)
    yield
    await close_state(app)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Klede Waitlist API",
        description="Gamified waitlist backend: signups, referrals, tasks and levels",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(waitlist_router)
    app.include_router(admin_router)

    return app


app = create_app()
