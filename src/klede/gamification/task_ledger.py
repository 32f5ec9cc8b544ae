"""Task completion with exactly-once point awards."""

from __future__ import annotations

import logging
from typing import Any

from klede.gamification.level_engine import plan_level_up
from klede.gamification.level_thresholds import LEVEL_THRESHOLDS
from klede.waitlist.errors import EntryNotFoundError, TaskNotFoundError
from klede.waitlist.models import LevelUpResult, TaskCompletion, WaitlistEntry
from klede.waitlist.store import EntryStore

logger = logging.getLogger(__name__)


async def complete_task(
    store: EntryStore,
    email: str,
    task_id: int,
    thresholds: list[dict] = LEVEL_THRESHOLDS,
) -> TaskCompletion:
    """Mark a task complete and award its points. Returns the updated entry.

    The ``task_completions`` flag is the idempotency key: a second
    completion of the same task is a no-op that reports
    ``already_completed=True``. The flag check, the point award and the
    level-up are one ``modify_entry`` call, so concurrent completions
    (in this process or another one on the same database) award once and
    never lose each other's points.
    """
    if await store.get_by_email(email) is None:
        msg = f"No waitlist entry for {email}"
        raise EntryNotFoundError(msg)

    task = await store.get_task_by_id(task_id)
    if task is None:
        msg = f"Task {task_id} not found"
        raise TaskNotFoundError(msg)

    def award(entry: WaitlistEntry) -> tuple[dict[str, Any], LevelUpResult | None]:
        if entry.has_completed(task.id):
            return {}, None
        points = entry.points + task.points_awarded
        level_fields, level_up = plan_level_up(entry.level, points, entry.unlocked_rewards, thresholds)
        fields = {
            "points": points,
            "task_completions": {**entry.task_completions, str(task.id): True},
            **level_fields,
        }
        return fields, level_up

    entry, level_up = await store.modify_entry(email, award)

    if level_up is None:
        return TaskCompletion(
            entry=entry,
            already_completed=True,
            level_up=LevelUpResult(leveled_up=False),
        )

    logger.info("Entry %d completed task %d (+%d points)", entry.id, task.id, task.points_awarded)
    if level_up.leveled_up:
        logger.info("Entry %d leveled up to %d", entry.id, level_up.new_level)
    return TaskCompletion(entry=entry, already_completed=False, level_up=level_up)


async def complete_task_by_type(
    store: EntryStore,
    email: str,
    task_type: str,
    thresholds: list[dict] = LEVEL_THRESHOLDS,
) -> TaskCompletion:
    """Complete the reserved task of ``task_type`` (e.g. ``signup``, ``referral``)."""
    task = await store.get_task_by_type(task_type)
    if task is None:
        msg = f"No task of type '{task_type}' in the catalog"
        raise TaskNotFoundError(msg)
    return await complete_task(store, email, task.id, thresholds)
