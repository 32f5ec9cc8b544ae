"""Waitlist and gamification API endpoints — all /api/waitlist/* routes."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from klede.dependencies import get_waitlist_service
from klede.gamification.schemas import (
    CompleteTaskRequest,
    CompleteTaskResponse,
    LeaderboardEntry,
    LevelEntry,
    ProfileResponse,
    ReferralInfoResponse,
    SignupRequest,
    SignupResponse,
)
from klede.gamification.service import WaitlistService
from klede.waitlist.errors import (
    DuplicateEmailError,
    EntryNotFoundError,
    InvalidEmailError,
    ReferralNotFoundError,
    TaskNotFoundError,
)
from klede.waitlist.models import Task

logger = structlog.get_logger()

router = APIRouter(prefix="/api/waitlist", tags=["Waitlist"])


@router.post("", response_model=SignupResponse, status_code=201)
async def join_waitlist(
    body: SignupRequest,
    service: WaitlistService = Depends(get_waitlist_service),
) -> SignupResponse:
    """Join the waitlist, optionally with a referral code."""
    try:
        entry = await service.signup(
            email=body.email,
            name=body.name,
            referral_source=body.referral_source,
            referral_code=body.referral_code,
        )
    except InvalidEmailError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except DuplicateEmailError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    logger.info("waitlist_signup", entry_id=entry.id, referred=entry.referred_by is not None)
    return SignupResponse(message="Successfully added to waitlist", entry=entry)


@router.post("/complete-task", response_model=CompleteTaskResponse)
async def complete_task(
    body: CompleteTaskRequest,
    service: WaitlistService = Depends(get_waitlist_service),
) -> CompleteTaskResponse:
    """Complete a task for a waitlist entry. Repeats succeed without awarding points."""
    try:
        result = await service.complete_task(body.email, body.task_id)
    except EntryNotFoundError as e:
        raise HTTPException(status_code=404, detail="User not found") from e
    except TaskNotFoundError as e:
        raise HTTPException(status_code=404, detail="Task not found") from e

    return CompleteTaskResponse(
        success=True,
        already_completed=result.already_completed,
        updated_entry=result.entry,
        level_up=result.level_up.leveled_up,
        new_level=result.level_up.new_level,
        unlocked_rewards=result.level_up.unlocked_rewards,
    )


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    email: str | None = Query(None),
    service: WaitlistService = Depends(get_waitlist_service),
) -> ProfileResponse:
    """Waitlist profile with tasks, rewards and level progress."""
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")
    try:
        return await service.get_profile(email)
    except EntryNotFoundError as e:
        raise HTTPException(status_code=404, detail="User not found") from e


@router.get("/referral/{referral_code}", response_model=ReferralInfoResponse)
async def get_referral(
    referral_code: str,
    service: WaitlistService = Depends(get_waitlist_service),
) -> ReferralInfoResponse:
    """Validate a referral code and show who it belongs to."""
    try:
        return await service.get_referral_info(referral_code)
    except ReferralNotFoundError as e:
        raise HTTPException(status_code=404, detail="Invalid referral code") from e


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    service: WaitlistService = Depends(get_waitlist_service),
) -> list[LeaderboardEntry]:
    """Top entries by points with masked emails."""
    return await service.get_leaderboard()


@router.get("/levels", response_model=list[LevelEntry])
async def list_levels(
    service: WaitlistService = Depends(get_waitlist_service),
) -> list[LevelEntry]:
    """Level thresholds and the rewards attached to each level."""
    return await service.list_levels()


@router.get("/tasks", response_model=list[Task])
async def list_tasks(
    service: WaitlistService = Depends(get_waitlist_service),
) -> list[Task]:
    """Active tasks."""
    return await service.list_tasks()
