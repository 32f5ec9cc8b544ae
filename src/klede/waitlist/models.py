"""Domain records shared by every store implementation."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class WaitlistEntry(BaseModel):
    """A waitlist signup and its gamification state."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None = None
    referral_source: str | None = None
    has_received_welcome_email: bool = False
    created_at: datetime
    level: int = 1
    points: int = 0
    referral_code: str | None = None
    referred_by: str | None = None
    task_completions: dict[str, bool] = Field(default_factory=dict)
    unlocked_rewards: list[str] = Field(default_factory=list)
    last_interaction_at: datetime | None = None

    def has_completed(self, task_id: int) -> bool:
        return self.task_completions.get(str(task_id)) is True


class NewEntry(BaseModel):
    """Fields accepted by ``EntryStore.create_entry``."""

    email: str
    name: str | None = None
    referral_source: str | None = None
    referral_code: str | None = None
    referred_by: str | None = None


class Task(BaseModel):
    """An action an entry can complete to earn points."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    points_awarded: int
    type: str
    is_active: bool = True
    created_at: datetime | None = None


class Reward(BaseModel):
    """A perk that becomes available at a given level."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    required_level: int
    required_points: int
    type: str
    value: str | None = None
    is_active: bool = True
    created_at: datetime | None = None


class LevelUpResult(BaseModel):
    """Outcome of a level-up check. Only newly added rewards are listed."""

    leveled_up: bool
    new_level: int | None = None
    unlocked_rewards: list[str] = Field(default_factory=list)


class TaskCompletion(BaseModel):
    """Outcome of a task completion."""

    entry: WaitlistEntry
    already_completed: bool
    level_up: LevelUpResult
