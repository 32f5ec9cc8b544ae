"""Task and reward seed data, inserted once when the catalogs are empty."""

from __future__ import annotations

import logging

from klede.waitlist.store import EntryStore

logger = logging.getLogger(__name__)

SIGNUP_TASK_TYPE = "signup"
REFERRAL_TASK_TYPE = "referral"

TASK_SEED_DATA: list[dict] = [
    {
        "name": "Join Waitlist",
        "description": "Sign up for our exclusive collection waitlist",
        "points_awarded": 50,
        "type": SIGNUP_TASK_TYPE,
    },
    {
        "name": "Refer a Friend",
        "description": "Invite a friend to join the waitlist",
        "points_awarded": 100,
        "type": REFERRAL_TASK_TYPE,
    },
    {
        "name": "Share on Social Media",
        "description": "Share our collection on your social media",
        "points_awarded": 75,
        "type": "social_share",
    },
    {
        "name": "Complete Style Survey",
        "description": "Tell us about your fashion preferences",
        "points_awarded": 50,
        "type": "survey",
    },
    {
        "name": "Open Welcome Email",
        "description": "Open and read your welcome email",
        "points_awarded": 25,
        "type": "email_opened",
    },
]

REWARD_SEED_DATA: list[dict] = [
    {
        "name": "Exclusive Preview",
        "description": "Early access to collection preview images",
        "required_level": 2,
        "required_points": 100,
        "type": "exclusive_content",
        "value": "preview_access",
    },
    {
        "name": "5% Discount",
        "description": "5% discount on your first purchase",
        "required_level": 3,
        "required_points": 250,
        "type": "discount",
        "value": "KLEDE5",
    },
    {
        "name": "10% Discount",
        "description": "10% discount on your first purchase",
        "required_level": 4,
        "required_points": 500,
        "type": "discount",
        "value": "KLEDE10",
    },
    {
        "name": "Early Access",
        "description": "Shop the collection before public release",
        "required_level": 5,
        "required_points": 1000,
        "type": "early_access",
        "value": "early_access",
    },
]


async def seed_catalog(store: EntryStore) -> tuple[int, int]:
    """Insert predefined tasks and rewards into empty catalogs.

    Each catalog is only seeded when it has no rows at all, so running this
    on every startup is safe. Returns ``(tasks_seeded, rewards_seeded)``.
    """
    tasks_seeded = 0
    if not await store.list_all_tasks():
        for task_data in TASK_SEED_DATA:
            await store.create_task(**task_data)
            tasks_seeded += 1

    rewards_seeded = 0
    if not await store.list_all_rewards():
        for reward_data in REWARD_SEED_DATA:
            await store.create_reward(**reward_data)
            rewards_seeded += 1

    logger.info("Seeded %d tasks and %d rewards", tasks_seeded, rewards_seeded)
    return tasks_seeded, rewards_seeded
