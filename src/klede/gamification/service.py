"""Waitlist service — signup, task completion, profiles and leaderboard.

Point awards are atomic in the store (``EntryStore.modify_entry``). The
service additionally holds a per-email lock so signup runs its duplicate
check, creation and signup award as one step within this process.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from email_validator import EmailNotValidError, validate_email

from klede.gamification.level_engine import check_level_up
from klede.gamification.level_thresholds import LEVEL_THRESHOLDS, compute_level_progress, validate_thresholds
from klede.gamification.locks import KeyedLock
from klede.gamification.referral import generate_unique_referral_code, resolve_referrer
from klede.gamification.schemas import (
    GamificationSummary,
    LeaderboardEntry,
    LevelEntry,
    ProfileResponse,
    ProfileTask,
    ReferralInfoResponse,
)
from klede.gamification.seed import REFERRAL_TASK_TYPE, SIGNUP_TASK_TYPE
from klede.gamification.task_ledger import complete_task, complete_task_by_type
from klede.waitlist.errors import (
    DuplicateEmailError,
    EntryNotFoundError,
    InvalidEmailError,
    ReferralNotFoundError,
)
from klede.waitlist.models import LevelUpResult, NewEntry, Task, TaskCompletion, WaitlistEntry
from klede.waitlist.store import EntryStore

logger = logging.getLogger(__name__)

MASKED_DOMAIN = "***"


class WelcomeNotifier(Protocol):
    """Anything that can send the post-signup welcome email."""

    async def send_welcome_email(self, email: str) -> bool: ...


def mask_email(email: str) -> str:
    """Keep the local part, hide the domain: ``jane@x.com`` -> ``jane@***``."""
    return f"{email.split('@')[0]}@{MASKED_DOMAIN}"


def validate_signup_email(email: str | None) -> str:
    """Check ``email`` is a syntactically valid address and return it unchanged."""
    if not email or not email.strip():
        raise InvalidEmailError("Email is required")
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError as e:
        msg = f"Please enter a valid email address: {e}"
        raise InvalidEmailError(msg) from e
    return email


class WaitlistService:
    """Gamified waitlist operations on top of an ``EntryStore``."""

    def __init__(
        self,
        store: EntryStore,
        notifier: WelcomeNotifier | None = None,
        thresholds: list[dict] | None = None,
        leaderboard_size: int = 10,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._thresholds = thresholds if thresholds is not None else LEVEL_THRESHOLDS
        validate_thresholds(self._thresholds)
        self._leaderboard_size = leaderboard_size
        self._locks = KeyedLock()
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def store(self) -> EntryStore:
        return self._store

    @property
    def thresholds(self) -> list[dict]:
        return self._thresholds

    # ------------------------------------------------------------------
    # Signup
    # ------------------------------------------------------------------

    async def signup(
        self,
        email: str,
        name: str | None = None,
        referral_source: str | None = None,
        referral_code: str | None = None,
    ) -> WaitlistEntry:
        """Add ``email`` to the waitlist.

        1. Validate the email (no store access on failure)
        2. Reject duplicates with DuplicateEmailError
        3. Resolve the referral code; unknown codes are ignored
        4. Create the entry with its own referral code
        5. Complete the signup task, then the referrer's referral task
        6. Schedule the welcome email
        """
        validate_signup_email(email)

        referrer = await resolve_referrer(self._store, referral_code)

        async with self._locks(email):
            if await self._store.get_by_email(email) is not None:
                msg = "This email is already on the waitlist"
                raise DuplicateEmailError(msg)

            own_code = await generate_unique_referral_code(self._store, email)
            entry = await self._store.create_entry(
                NewEntry(
                    email=email,
                    name=name,
                    referral_source=referral_source,
                    referral_code=own_code,
                    referred_by=referrer.referral_code if referrer else None,
                )
            )
            logger.info("Entry %d joined the waitlist", entry.id)

            completion = await complete_task_by_type(
                self._store, email, SIGNUP_TASK_TYPE, self._thresholds
            )
            entry = completion.entry

        if referrer is not None:
            await self._credit_referrer(referrer, entry)

        self._schedule_welcome_email(entry)
        return entry

    async def _credit_referrer(self, referrer: WaitlistEntry, referee: WaitlistEntry) -> None:
        # Keyed on the referrer's fixed referral task: only the first referee credits them
        try:
            async with self._locks(referrer.email):
                await complete_task_by_type(
                    self._store, referrer.email, REFERRAL_TASK_TYPE, self._thresholds
                )
        except EntryNotFoundError:
            # Referrer deleted since the code was resolved; the signup stands
            logger.warning("Referrer %d of entry %d no longer exists", referrer.id, referee.id)

    def _schedule_welcome_email(self, entry: WaitlistEntry) -> None:
        if self._notifier is None:
            return
        task = asyncio.create_task(self._send_welcome_email(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send_welcome_email(self, entry: WaitlistEntry) -> None:
        try:
            sent = await self._notifier.send_welcome_email(entry.email)  # type: ignore[union-attr]
            if sent:
                await self._store.update_entry(entry.id, has_received_welcome_email=True)
        except Exception:
            logger.exception("Welcome email to entry %d failed", entry.id)

    async def wait_for_notifications(self) -> None:
        """Wait for scheduled welcome emails (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Tasks and levels
    # ------------------------------------------------------------------

    async def complete_task(self, email: str, task_id: int) -> TaskCompletion:
        """Complete ``task_id`` for ``email``; repeated calls are no-ops."""
        async with self._locks(email):
            return await complete_task(self._store, email, task_id, self._thresholds)

    async def check_level_up(self, email: str) -> LevelUpResult:
        async with self._locks(email):
            return await check_level_up(self._store, email, self._thresholds)

    async def list_tasks(self) -> list[Task]:
        return await self._store.list_active_tasks()

    async def list_levels(self) -> list[LevelEntry]:
        """Level thresholds with the reward records gated at each level."""
        rewards = await self._store.list_all_rewards()
        return [
            LevelEntry(
                level=t["level"],
                required_points=t["required_points"],
                rewards=list(t.get("rewards") or []),
                rewards_details=[r for r in rewards if r.required_level == t["level"]],
            )
            for t in self._thresholds
        ]

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    async def get_profile(self, email: str) -> ProfileResponse:
        entry = await self._store.get_by_email(email)
        if entry is None:
            msg = "User not found"
            raise EntryNotFoundError(msg)

        tasks = await self._store.list_active_tasks()
        rewards = await self._store.get_rewards_by_level(entry.level)
        progress = compute_level_progress(entry.level, entry.points, self._thresholds)

        return ProfileResponse(
            **entry.model_dump(),
            tasks=[ProfileTask(**t.model_dump(), completed=entry.has_completed(t.id)) for t in tasks],
            rewards=rewards,
            gamification=GamificationSummary(
                current_level=entry.level,
                current_points=entry.points,
                next_level_points=progress["next_level_points"],
                level_progress=progress["level_progress"],
                unlocked_rewards=list(entry.unlocked_rewards),
            ),
        )

    async def get_referral_info(self, code: str) -> ReferralInfoResponse:
        referrer = await resolve_referrer(self._store, code)
        if referrer is None:
            msg = "Invalid referral code"
            raise ReferralNotFoundError(msg)
        return ReferralInfoResponse(referral_code=code, referrer_name=referrer.name)

    async def get_leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        """Top entries by points; ties keep signup order."""
        limit = limit or self._leaderboard_size
        entries = sorted(await self._store.list_all(), key=lambda e: e.points, reverse=True)
        return [
            LeaderboardEntry(
                rank=i,
                name=e.name or "Anonymous",
                email=mask_email(e.email),
                level=e.level,
                points=e.points,
            )
            for i, e in enumerate(entries[:limit], start=1)
        ]

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def list_entries(self) -> list[WaitlistEntry]:
        return await self._store.list_all()

    async def delete_entry(self, entry_id: int) -> None:
        entry = await self._store.get_by_id(entry_id)
        if entry is None:
            msg = "Entry not found"
            raise EntryNotFoundError(msg)
        async with self._locks(entry.email):
            if not await self._store.delete_entry(entry_id):
                raise EntryNotFoundError("Entry not found")
        logger.info("Entry %d deleted", entry_id)
