"""In-memory entry store, used for development and tests."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Any

from klede.waitlist.errors import DuplicateEmailError, EntryNotFoundError
from klede.waitlist.models import NewEntry, Reward, Task, WaitlistEntry
from klede.waitlist.store import EntryChange, EntryStore, T


class InMemoryStore(EntryStore):
    """Dict-backed store. Records are replaced on update, never mutated in place."""

    def __init__(self) -> None:
        self._entries: dict[int, WaitlistEntry] = {}
        self._tasks: dict[int, Task] = {}
        self._rewards: dict[int, Reward] = {}
        self._entry_ids = itertools.count(1)
        self._task_ids = itertools.count(1)
        self._reward_ids = itertools.count(1)

    # --- Entries ---

    async def create_entry(self, data: NewEntry) -> WaitlistEntry:
        if await self.get_by_email(data.email) is not None:
            msg = f"{data.email} is already on the waitlist"
            raise DuplicateEmailError(msg)
        now = datetime.now(timezone.utc)
        entry = WaitlistEntry(
            id=next(self._entry_ids),
            email=data.email,
            name=data.name,
            referral_source=data.referral_source,
            referral_code=data.referral_code,
            referred_by=data.referred_by,
            created_at=now,
            last_interaction_at=now,
        )
        self._entries[entry.id] = entry
        return entry.model_copy(deep=True)

    async def get_by_id(self, entry_id: int) -> WaitlistEntry | None:
        entry = self._entries.get(entry_id)
        return entry.model_copy(deep=True) if entry else None

    async def get_by_email(self, email: str) -> WaitlistEntry | None:
        for entry in self._entries.values():
            if entry.email == email:
                return entry.model_copy(deep=True)
        return None

    async def get_by_referral_code(self, code: str) -> WaitlistEntry | None:
        for entry in self._entries.values():
            if entry.referral_code is not None and entry.referral_code == code:
                return entry.model_copy(deep=True)
        return None

    async def update_entry(self, entry_id: int, **fields: Any) -> WaitlistEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            msg = f"Waitlist entry {entry_id} not found"
            raise EntryNotFoundError(msg)
        fields["last_interaction_at"] = datetime.now(timezone.utc)
        updated = entry.model_copy(update=fields, deep=True)
        self._entries[entry_id] = updated
        return updated.model_copy(deep=True)

    async def modify_entry(self, email: str, change: EntryChange[T]) -> tuple[WaitlistEntry, T]:
        # No await between read and write: atomic on the event loop
        current = next((e for e in self._entries.values() if e.email == email), None)
        if current is None:
            msg = f"No waitlist entry for {email}"
            raise EntryNotFoundError(msg)
        fields, outcome = change(current.model_copy(deep=True))
        if not fields:
            return current.model_copy(deep=True), outcome
        updated = current.model_copy(
            update={**fields, "last_interaction_at": datetime.now(timezone.utc)},
            deep=True,
        )
        self._entries[current.id] = updated
        return updated.model_copy(deep=True), outcome

    async def list_all(self) -> list[WaitlistEntry]:
        entries = sorted(self._entries.values(), key=lambda e: (e.created_at, e.id))
        return [e.model_copy(deep=True) for e in entries]

    async def delete_entry(self, entry_id: int) -> bool:
        return self._entries.pop(entry_id, None) is not None

    # --- Tasks ---

    async def create_task(
        self,
        name: str,
        description: str,
        points_awarded: int,
        type: str,  # noqa: A002
        is_active: bool = True,
    ) -> Task:
        task = Task(
            id=next(self._task_ids),
            name=name,
            description=description,
            points_awarded=points_awarded,
            type=type,
            is_active=is_active,
            created_at=datetime.now(timezone.utc),
        )
        self._tasks[task.id] = task
        return task

    async def list_all_tasks(self) -> list[Task]:
        return sorted(self._tasks.values(), key=lambda t: (t.points_awarded, t.id))

    async def list_active_tasks(self) -> list[Task]:
        return [t for t in await self.list_all_tasks() if t.is_active]

    async def get_task_by_id(self, task_id: int) -> Task | None:
        return self._tasks.get(task_id)

    async def get_task_by_type(self, task_type: str) -> Task | None:
        matches = [t for t in self._tasks.values() if t.type == task_type]
        return min(matches, key=lambda t: t.id) if matches else None

    # --- Rewards ---

    async def create_reward(
        self,
        name: str,
        description: str,
        required_level: int,
        required_points: int,
        type: str,  # noqa: A002
        value: str | None = None,
        is_active: bool = True,
    ) -> Reward:
        reward = Reward(
            id=next(self._reward_ids),
            name=name,
            description=description,
            required_level=required_level,
            required_points=required_points,
            type=type,
            value=value,
            is_active=is_active,
            created_at=datetime.now(timezone.utc),
        )
        self._rewards[reward.id] = reward
        return reward

    async def list_all_rewards(self) -> list[Reward]:
        return sorted(self._rewards.values(), key=lambda r: (r.required_level, r.id))

    async def list_active_rewards(self) -> list[Reward]:
        return [r for r in await self.list_all_rewards() if r.is_active]

    async def get_rewards_by_level(self, level: int) -> list[Reward]:
        return [r for r in await self.list_active_rewards() if r.required_level <= level]
