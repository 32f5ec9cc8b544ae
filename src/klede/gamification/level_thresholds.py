"""Level thresholds and computation.

Thresholds must be strictly increasing in both level and required points;
``validate_thresholds`` enforces this for the defaults at import time.
"""

from __future__ import annotations

import math

LEVEL_THRESHOLDS: list[dict] = [
    {"level": 1, "required_points": 0, "rewards": []},
    {"level": 2, "required_points": 100, "rewards": ["exclusive_preview"]},
    {"level": 3, "required_points": 250, "rewards": ["5_percent_discount"]},
    {"level": 4, "required_points": 500, "rewards": ["10_percent_discount"]},
    {"level": 5, "required_points": 1000, "rewards": ["early_access"]},
]


def validate_thresholds(thresholds: list[dict]) -> None:
    """Raise ValueError unless levels and required points strictly increase."""
    if not thresholds:
        raise ValueError("At least one level threshold is required")
    for prev, cur in zip(thresholds, thresholds[1:]):
        if cur["level"] <= prev["level"] or cur["required_points"] <= prev["required_points"]:
            msg = f"Level thresholds must strictly increase (level {prev['level']} -> {cur['level']})"
            raise ValueError(msg)


def level_for_points(points: int, thresholds: list[dict] = LEVEL_THRESHOLDS) -> int:
    """Highest threshold level whose required points are covered by ``points``."""
    level = thresholds[0]["level"]
    for threshold in thresholds:
        if points >= threshold["required_points"]:
            level = threshold["level"]
        else:
            break
    return level


def rewards_between(
    current_level: int,
    new_level: int,
    thresholds: list[dict] = LEVEL_THRESHOLDS,
) -> list[str]:
    """Rewards of every level in ``(current_level, new_level]``, in level order."""
    rewards: list[str] = []
    for threshold in thresholds:
        if current_level < threshold["level"] <= new_level:
            rewards.extend(threshold.get("rewards") or [])
    return rewards


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_level_progress(
    level: int,
    points: int,
    thresholds: list[dict] = LEVEL_THRESHOLDS,
) -> dict:
    """Progress from the current level's threshold towards the next one.

    At the top level there is no next threshold: ``next_level_points`` is
    None and progress is 100.
    """
    current = next((t for t in thresholds if t["level"] == level), None)
    following = [t for t in thresholds if t["level"] > level]

    if not following:
        return {"next_level_points": None, "level_progress": 100}

    next_threshold = following[0]
    prev_points = current["required_points"] if current else 0
    span = next_threshold["required_points"] - prev_points
    progress = _round_half_up(100 * (points - prev_points) / span)

    return {
        "next_level_points": next_threshold["required_points"],
        "level_progress": max(0, min(progress, 100)),
    }


validate_thresholds(LEVEL_THRESHOLDS)
