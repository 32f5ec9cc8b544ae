"""Entry store interface.

The gamification core only talks to this abstract class. Concrete stores
(in-memory, SQL) are chosen once at startup by ``klede.waitlist.factory``.
Read-modify-write of an entry goes through ``modify_entry``, which each
store makes atomic against other writers, including other processes
sharing the same database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar

from klede.waitlist.models import NewEntry, Reward, Task, WaitlistEntry

T = TypeVar("T")

# Fields to write (empty for no write) and a caller-defined outcome
EntryChange = Callable[[WaitlistEntry], tuple[dict[str, Any], T]]


class EntryStore(ABC):
    """Persistence for waitlist entries and the task/reward catalogs."""

    async def init(self) -> None:
        """Prepare the backing storage (create tables, open pools)."""

    async def close(self) -> None:
        """Release any held resources."""

    async def ping(self) -> bool:
        """Return True if the backing storage is reachable."""
        return True

    # --- Entries ---

    @abstractmethod
    async def create_entry(self, data: NewEntry) -> WaitlistEntry:
        """Insert a new entry with level 1, 0 points and empty gamification state.

        Raises DuplicateEmailError when the email is already stored.
        """
        ...

    @abstractmethod
    async def get_by_id(self, entry_id: int) -> WaitlistEntry | None: ...

    @abstractmethod
    async def get_by_email(self, email: str) -> WaitlistEntry | None:
        """Exact-match lookup; no case folding."""
        ...

    @abstractmethod
    async def get_by_referral_code(self, code: str) -> WaitlistEntry | None: ...

    @abstractmethod
    async def update_entry(self, entry_id: int, **fields: Any) -> WaitlistEntry:
        """Apply a partial update and stamp ``last_interaction_at``.

        Raises:
            EntryNotFoundError: If the entry does not exist.
        """
        ...

    @abstractmethod
    async def modify_entry(self, email: str, change: EntryChange[T]) -> tuple[WaitlistEntry, T]:
        """Atomically read the entry for ``email``, apply ``change`` and persist it.

        ``change`` receives the current entry and returns the fields to write
        plus an outcome value. It must not have side effects: a store may call
        it again on a fresh read when a concurrent writer got there first.
        An empty field dict means nothing is written. Returns the entry as
        stored afterwards and the outcome of the applied ``change`` call.

        Raises:
            EntryNotFoundError: If no entry matches ``email``.
        """
        ...

    @abstractmethod
    async def list_all(self) -> list[WaitlistEntry]:
        """All entries in signup order."""
        ...

    @abstractmethod
    async def delete_entry(self, entry_id: int) -> bool:
        """Delete an entry. Returns False if it did not exist."""
        ...

    # --- Tasks ---

    @abstractmethod
    async def create_task(
        self,
        name: str,
        description: str,
        points_awarded: int,
        type: str,  # noqa: A002
        is_active: bool = True,
    ) -> Task: ...

    @abstractmethod
    async def list_all_tasks(self) -> list[Task]:
        """All tasks ordered by points awarded."""
        ...

    @abstractmethod
    async def list_active_tasks(self) -> list[Task]: ...

    @abstractmethod
    async def get_task_by_id(self, task_id: int) -> Task | None: ...

    @abstractmethod
    async def get_task_by_type(self, task_type: str) -> Task | None:
        """First task (lowest id) of the given type."""
        ...

    # --- Rewards ---

    @abstractmethod
    async def create_reward(
        self,
        name: str,
        description: str,
        required_level: int,
        required_points: int,
        type: str,  # noqa: A002
        value: str | None = None,
        is_active: bool = True,
    ) -> Reward: ...

    @abstractmethod
    async def list_all_rewards(self) -> list[Reward]:
        """All rewards ordered by required level."""
        ...

    @abstractmethod
    async def list_active_rewards(self) -> list[Reward]: ...

    @abstractmethod
    async def get_rewards_by_level(self, level: int) -> list[Reward]:
        """Active rewards with ``required_level <= level``, ascending by level."""
        ...
