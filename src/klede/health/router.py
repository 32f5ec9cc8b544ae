"""Health, readiness, and version endpoints."""

from fastapi import APIRouter, Depends

from klede.config import Settings
from klede.dependencies import get_app_settings, get_store
from klede.waitlist.store import EntryStore

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check — returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    store: EntryStore = Depends(get_store),  # noqa: B008
) -> dict[str, object]:
    """Readiness check — checks storage connectivity."""
    checks: dict[str, object] = {}

    try:
        checks["storage"] = "ok" if await store.ping() else "error: ping failed"
    except Exception as exc:
        checks["storage"] = f"error: {exc}"

    all_ok = all(v == "ok" for v in checks.values())
    return {"status": "ready" if all_ok else "degraded", "checks": checks}


@router.get("/version")
async def version(
    settings: Settings = Depends(get_app_settings),  # noqa: B008
) -> dict[str, str]:
    """Return API version and environment."""
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
