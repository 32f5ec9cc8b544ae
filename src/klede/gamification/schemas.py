"""Pydantic schemas for waitlist and gamification endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from klede.waitlist.models import Reward, Task, WaitlistEntry


# --- Requests ---


class SignupRequest(BaseModel):
    # Plain str: the service validates and keeps the address byte-for-byte
    email: str = Field(..., max_length=320)
    name: str | None = Field(None, max_length=256)
    referral_source: str | None = Field(None, max_length=256)
    referral_code: str | None = Field(None, max_length=16)


class CompleteTaskRequest(BaseModel):
    email: str = Field(..., max_length=320)
    task_id: int


# --- Responses ---


class SignupResponse(BaseModel):
    message: str
    entry: WaitlistEntry


class CompleteTaskResponse(BaseModel):
    success: bool
    already_completed: bool
    updated_entry: WaitlistEntry
    level_up: bool
    new_level: int | None = None
    unlocked_rewards: list[str] = []


class ProfileTask(Task):
    completed: bool


class GamificationSummary(BaseModel):
    current_level: int
    current_points: int
    next_level_points: int | None
    level_progress: int = Field(..., ge=0, le=100)
    unlocked_rewards: list[str]


class ProfileResponse(WaitlistEntry):
    """Entry fields plus tasks, rewards and level progress."""

    tasks: list[ProfileTask]
    rewards: list[Reward]
    gamification: GamificationSummary


class ReferralInfoResponse(BaseModel):
    referral_code: str
    referrer_name: str | None
    valid: bool = True


class LeaderboardEntry(BaseModel):
    rank: int
    name: str
    email: str
    level: int
    points: int


class LevelEntry(BaseModel):
    level: int
    required_points: int
    rewards: list[str]
    rewards_details: list[Reward]
