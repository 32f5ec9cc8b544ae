"""SQLAlchemy-backed entry store (PostgreSQL in production, SQLite in tests)."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from klede.database import create_engine, create_session_factory
from klede.db.base import Base
from klede.db.models import RewardRow, TaskRow, WaitlistEntryRow
from klede.waitlist.errors import DuplicateEmailError, EntryNotFoundError
from klede.waitlist.models import NewEntry, Reward, Task, WaitlistEntry
from klede.waitlist.store import EntryChange, EntryStore, T

logger = logging.getLogger(__name__)

MAX_MODIFY_ATTEMPTS = 5


class SqlStore(EntryStore):
    """Entry store on an async SQLAlchemy engine.

    Each operation runs in its own short session. A unique-email violation
    becomes ``DuplicateEmailError``; other integrity errors propagate.
    Every write bumps the row ``version`` so ``modify_entry`` can detect a
    concurrent writer.
    """

    def __init__(self, url: str, create_tables: bool = True) -> None:
        self._url = url
        self._create_tables = create_tables
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        self._engine = create_engine(self._url)
        self._session_factory = create_session_factory(self._engine)
        if self._create_tables:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Waitlist tables ensured")

    async def close(self) -> None:
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def ping(self) -> bool:
        async with self._session() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1

    def _session(self) -> AsyncSession:
        if self._session_factory is None:
            msg = "Store not initialized. Call init() first."
            raise RuntimeError(msg)
        return self._session_factory()

    # --- Entries ---

    async def create_entry(self, data: NewEntry) -> WaitlistEntry:
        now = datetime.now(timezone.utc)
        row = WaitlistEntryRow(
            email=data.email,
            name=data.name,
            referral_source=data.referral_source,
            referral_code=data.referral_code,
            referred_by=data.referred_by,
            has_received_welcome_email=False,
            level=1,
            points=0,
            task_completions={},
            unlocked_rewards=[],
            created_at=now,
            last_interaction_at=now,
        )
        async with self._session() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                if await self.get_by_email(data.email) is not None:
                    msg = f"{data.email} is already on the waitlist"
                    raise DuplicateEmailError(msg) from e
                raise
            return WaitlistEntry.model_validate(row)

    async def get_by_id(self, entry_id: int) -> WaitlistEntry | None:
        async with self._session() as session:
            row = await session.get(WaitlistEntryRow, entry_id)
            return WaitlistEntry.model_validate(row) if row else None

    async def get_by_email(self, email: str) -> WaitlistEntry | None:
        return await self._get_one(WaitlistEntryRow.email == email)

    async def get_by_referral_code(self, code: str) -> WaitlistEntry | None:
        return await self._get_one(WaitlistEntryRow.referral_code == code)

    async def _get_one(self, condition: Any) -> WaitlistEntry | None:
        async with self._session() as session:
            result = await session.execute(select(WaitlistEntryRow).where(condition))
            row = result.scalar_one_or_none()
            return WaitlistEntry.model_validate(row) if row else None

    async def update_entry(self, entry_id: int, **fields: Any) -> WaitlistEntry:
        async with self._session() as session:
            result = await session.execute(
                select(WaitlistEntryRow).where(WaitlistEntryRow.id == entry_id).with_for_update()
            )
            row = result.scalar_one_or_none()
            if row is None:
                msg = f"Waitlist entry {entry_id} not found"
                raise EntryNotFoundError(msg)
            for key, value in fields.items():
                # JSON columns are reassigned with fresh containers so the ORM sees the change
                if isinstance(value, dict):
                    value = dict(value)
                elif isinstance(value, list):
                    value = list(value)
                setattr(row, key, value)
            row.last_interaction_at = datetime.now(timezone.utc)
            row.version += 1
            await session.commit()
            return WaitlistEntry.model_validate(row)

    async def modify_entry(self, email: str, change: EntryChange[T]) -> tuple[WaitlistEntry, T]:
        """Row-locked read, ``change``, then an update guarded by ``version``.

        PostgreSQL holds the row lock from the SELECT until commit. SQLite has
        no row locks; its IMMEDIATE transactions serialize writers instead. The
        version guard retries on a fresh read if either protection is missing.
        """
        for _attempt in range(MAX_MODIFY_ATTEMPTS):
            async with self._session() as session:
                result = await session.execute(
                    select(WaitlistEntryRow).where(WaitlistEntryRow.email == email).with_for_update()
                )
                row = result.scalar_one_or_none()
                if row is None:
                    msg = f"No waitlist entry for {email}"
                    raise EntryNotFoundError(msg)

                current = WaitlistEntry.model_validate(row)
                fields, outcome = change(current.model_copy(deep=True))
                if not fields:
                    await session.commit()
                    return current, outcome

                values = {**fields, "last_interaction_at": datetime.now(timezone.utc)}
                updated = await session.execute(
                    update(WaitlistEntryRow)
                    .where(WaitlistEntryRow.id == row.id, WaitlistEntryRow.version == row.version)
                    .values(**values, version=row.version + 1)
                    .execution_options(synchronize_session=False)
                )
                if updated.rowcount == 1:
                    await session.commit()
                    return current.model_copy(update=values, deep=True), outcome
                await session.rollback()
            logger.info("Entry %d changed concurrently, retrying", current.id)

        msg = f"Could not update entry for {email} after {MAX_MODIFY_ATTEMPTS} attempts"
        raise RuntimeError(msg)

    async def list_all(self) -> list[WaitlistEntry]:
        async with self._session() as session:
            result = await session.execute(
                select(WaitlistEntryRow).order_by(WaitlistEntryRow.created_at, WaitlistEntryRow.id)
            )
            return [WaitlistEntry.model_validate(row) for row in result.scalars()]

    async def delete_entry(self, entry_id: int) -> bool:
        async with self._session() as session:
            result = await session.execute(
                delete(WaitlistEntryRow).where(WaitlistEntryRow.id == entry_id)
            )
            await session.commit()
            return result.rowcount > 0

    # --- Tasks ---

    async def create_task(
        self,
        name: str,
        description: str,
        points_awarded: int,
        type: str,  # noqa: A002
        is_active: bool = True,
    ) -> Task:
        row = TaskRow(
            name=name,
            description=description,
            points_awarded=points_awarded,
            type=type,
            is_active=is_active,
            created_at=datetime.now(timezone.utc),
        )
        async with self._session() as session:
            session.add(row)
            await session.commit()
            return Task.model_validate(row)

    async def list_all_tasks(self) -> list[Task]:
        return await self._list_tasks(active_only=False)

    async def list_active_tasks(self) -> list[Task]:
        return await self._list_tasks(active_only=True)

    async def _list_tasks(self, active_only: bool) -> list[Task]:
        stmt = select(TaskRow).order_by(TaskRow.points_awarded, TaskRow.id)
        if active_only:
            stmt = stmt.where(TaskRow.is_active.is_(True))
        async with self._session() as session:
            result = await session.execute(stmt)
            return [Task.model_validate(row) for row in result.scalars()]

    async def get_task_by_id(self, task_id: int) -> Task | None:
        async with self._session() as session:
            row = await session.get(TaskRow, task_id)
            return Task.model_validate(row) if row else None

    async def get_task_by_type(self, task_type: str) -> Task | None:
        async with self._session() as session:
            result = await session.execute(
                select(TaskRow).where(TaskRow.type == task_type).order_by(TaskRow.id).limit(1)
            )
            row = result.scalar_one_or_none()
            return Task.model_validate(row) if row else None

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
        row = RewardRow(
            name=name,
            description=description,
            required_level=required_level,
            required_points=required_points,
            type=type,
            value=value,
            is_active=is_active,
            created_at=datetime.now(timezone.utc),
        )
        async with self._session() as session:
            session.add(row)
            await session.commit()
            return Reward.model_validate(row)

    async def list_all_rewards(self) -> list[Reward]:
        return await self._list_rewards()

    async def list_active_rewards(self) -> list[Reward]:
        return await self._list_rewards(RewardRow.is_active.is_(True))

    async def get_rewards_by_level(self, level: int) -> list[Reward]:
        return await self._list_rewards(
            RewardRow.is_active.is_(True),
            RewardRow.required_level <= level,
        )

    async def _list_rewards(self, *conditions: Any) -> list[Reward]:
        stmt = select(RewardRow).where(*conditions).order_by(RewardRow.required_level, RewardRow.id)
        async with self._session() as session:
            result = await session.execute(stmt)
            return [Reward.model_validate(row) for row in result.scalars()]
