"""Level-up detection and reward unlocking."""

from __future__ import annotations

import logging
from typing import Any

from klede.gamification.level_thresholds import LEVEL_THRESHOLDS, level_for_points, rewards_between
from klede.waitlist.models import LevelUpResult, WaitlistEntry
from klede.waitlist.store import EntryStore

logger = logging.getLogger(__name__)


def plan_level_up(
    level: int,
    points: int,
    unlocked_rewards: list[str],
    thresholds: list[dict] = LEVEL_THRESHOLDS,
) -> tuple[dict[str, Any], LevelUpResult]:
    """Fields to persist for an entry at ``level`` holding ``points``.

    1. Derive the level from points
    2. If it is not above ``level``, nothing changes
    3. Append rewards of every crossed level not already unlocked
    4. Return level + rewards as one set of fields
    """
    new_level = level_for_points(points, thresholds)
    if new_level <= level:
        return {}, LevelUpResult(leveled_up=False)

    newly_unlocked: list[str] = []
    for reward in rewards_between(level, new_level, thresholds):
        if reward not in unlocked_rewards and reward not in newly_unlocked:
            newly_unlocked.append(reward)

    fields = {"level": new_level, "unlocked_rewards": [*unlocked_rewards, *newly_unlocked]}
    return fields, LevelUpResult(leveled_up=True, new_level=new_level, unlocked_rewards=newly_unlocked)


async def check_level_up(
    store: EntryStore,
    email: str,
    thresholds: list[dict] = LEVEL_THRESHOLDS,
) -> LevelUpResult:
    """Recompute the entry's level from its points and persist any increase.

    Raises:
        EntryNotFoundError: If no entry matches ``email``.
    """

    def level_up(entry: WaitlistEntry) -> tuple[dict[str, Any], tuple[int, LevelUpResult]]:
        fields, result = plan_level_up(entry.level, entry.points, entry.unlocked_rewards, thresholds)
        return fields, (entry.level, result)

    entry, (previous_level, result) = await store.modify_entry(email, level_up)
    if result.leveled_up:
        logger.info("Entry %d leveled up %d -> %d", entry.id, previous_level, result.new_level)
    return result
