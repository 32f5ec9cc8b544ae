"""Admin dashboard API endpoints — all /api/admin/* routes."""

from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from klede.admin.auth import check_credentials, create_admin_token, require_admin
from klede.admin.schemas import (
    AdminCheckResponse,
    BroadcastResponse,
    DeleteResponse,
    LoginRequest,
    PromotionalRequest,
    TokenResponse,
)
from klede.admin.service import broadcast, export_csv
from klede.config import Settings
from klede.dependencies import get_app_settings, get_email_service, get_waitlist_service
from klede.email.service import EmailService
from klede.gamification.service import WaitlistService
from klede.waitlist.errors import EntryNotFoundError
from klede.waitlist.models import WaitlistEntry

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    """Exchange the admin username/password for a bearer token."""
    if not check_credentials(settings, body.username, body.password):
        logger.warning("admin_login_failed", username=body.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    logger.info("admin_login", username=body.username)
    return TokenResponse(
        access_token=create_admin_token(settings, body.username),
        expires_in=settings.admin_token_expire_minutes * 60,
    )


@router.get("/check", response_model=AdminCheckResponse)
async def check(username: str = Depends(require_admin)) -> AdminCheckResponse:
    return AdminCheckResponse(is_authenticated=True, username=username)


@router.get("/waitlist", response_model=list[WaitlistEntry])
async def list_waitlist(
    _admin: str = Depends(require_admin),
    service: WaitlistService = Depends(get_waitlist_service),
) -> list[WaitlistEntry]:
    """All waitlist entries in signup order."""
    return await service.list_entries()


@router.get("/waitlist/export")
async def export_waitlist(
    _admin: str = Depends(require_admin),
    service: WaitlistService = Depends(get_waitlist_service),
) -> Response:
    """Download the waitlist as CSV."""
    entries = await service.list_entries()
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return Response(
        content=export_csv(entries),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="waitlist-{stamp}.csv"'},
    )


@router.delete("/waitlist/{entry_id}", response_model=DeleteResponse)
async def delete_waitlist_entry(
    entry_id: int,
    _admin: str = Depends(require_admin),
    service: WaitlistService = Depends(get_waitlist_service),
) -> DeleteResponse:
    try:
        await service.delete_entry(entry_id)
    except EntryNotFoundError as e:
        raise HTTPException(status_code=404, detail="Entry not found") from e
    return DeleteResponse(success=True)


@router.post("/send-promotional", response_model=BroadcastResponse)
async def send_promotional(
    body: PromotionalRequest,
    _admin: str = Depends(require_admin),
    service: WaitlistService = Depends(get_waitlist_service),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_app_settings),
) -> BroadcastResponse:
    """Send the promotional email, with the admin's message, to everyone."""
    entries = await service.list_entries()
    if not entries:
        raise HTTPException(status_code=404, detail="No waitlist entries found")

    async def send(email: str) -> bool:
        return await email_service.send_promotional_email(email, body.message)

    sent, failed = await broadcast(entries, send, settings.email_broadcast_concurrency)
    logger.info("promotional_sent", sent=sent, total=len(entries))
    return BroadcastResponse(
        message=f"Promotional emails sent to {sent} of {len(entries)} subscribers",
        sent=sent,
        total=len(entries),
        failed_emails=failed,
    )


@router.post("/send-launch-announcement", response_model=BroadcastResponse)
async def send_launch_announcement(
    _admin: str = Depends(require_admin),
    service: WaitlistService = Depends(get_waitlist_service),
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = Depends(get_app_settings),
) -> BroadcastResponse:
    """Tell the whole waitlist the shop is open."""
    entries = await service.list_entries()
    if not entries:
        raise HTTPException(status_code=404, detail="No waitlist entries found")

    sent, failed = await broadcast(
        entries, email_service.send_launch_email, settings.email_broadcast_concurrency
    )
    logger.info("launch_announcement_sent", sent=sent, total=len(entries))
    return BroadcastResponse(
        message=f"Launch announcement sent to {sent} of {len(entries)} subscribers",
        sent=sent,
        total=len(entries),
        failed_emails=failed,
    )
