"""SQL store tests on a throwaway SQLite database (aiosqlite)."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio

from klede.gamification.seed import seed_catalog
from klede.gamification.service import WaitlistService
from klede.waitlist.errors import DuplicateEmailError, EntryNotFoundError
from klede.waitlist.models import NewEntry
from klede.waitlist.sql_store import SqlStore

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def sql_store(tmp_path) -> AsyncGenerator[SqlStore, None]:
    store = SqlStore(f"sqlite+aiosqlite:///{tmp_path / 'waitlist.db'}")
    await store.init()
    await seed_catalog(store)
    yield store
    await store.close()


async def test_ping(sql_store):
    assert await sql_store.ping() is True


async def test_uninitialized_store_raises():
    with pytest.raises(RuntimeError):
        await SqlStore("sqlite+aiosqlite:///:memory:").get_by_id(1)


async def test_create_and_read(sql_store):
    entry = await sql_store.create_entry(NewEntry(email="a@mail.com", name="Ann", referral_code="AAAA1111"))

    assert entry.id is not None
    assert entry.level == 1
    assert entry.points == 0
    assert entry.task_completions == {}

    by_email = await sql_store.get_by_email("a@mail.com")
    by_code = await sql_store.get_by_referral_code("AAAA1111")
    by_id = await sql_store.get_by_id(entry.id)
    assert by_email.id == by_code.id == by_id.id == entry.id
    assert await sql_store.get_by_email("A@mail.com") is None


async def test_duplicate_email(sql_store):
    await sql_store.create_entry(NewEntry(email="a@mail.com"))
    with pytest.raises(DuplicateEmailError):
        await sql_store.create_entry(NewEntry(email="a@mail.com"))


async def test_update_json_columns(sql_store):
    entry = await sql_store.create_entry(NewEntry(email="a@mail.com"))

    await sql_store.update_entry(entry.id, points=75, task_completions={"3": True})
    await sql_store.update_entry(entry.id, unlocked_rewards=["exclusive_preview"])

    stored = await sql_store.get_by_email("a@mail.com")
    assert stored.points == 75
    assert stored.task_completions == {"3": True}
    assert stored.unlocked_rewards == ["exclusive_preview"]


async def test_update_missing(sql_store):
    with pytest.raises(EntryNotFoundError):
        await sql_store.update_entry(12345, points=1)


async def test_list_and_delete(sql_store):
    first = await sql_store.create_entry(NewEntry(email="first@mail.com"))
    await sql_store.create_entry(NewEntry(email="second@mail.com"))

    assert [e.email for e in await sql_store.list_all()] == ["first@mail.com", "second@mail.com"]
    assert await sql_store.delete_entry(first.id) is True
    assert await sql_store.delete_entry(first.id) is False
    assert [e.email for e in await sql_store.list_all()] == ["second@mail.com"]


async def test_catalog_queries(sql_store):
    tasks = await sql_store.list_active_tasks()
    assert [t.points_awarded for t in tasks] == [25, 50, 50, 75, 100]
    assert (await sql_store.get_task_by_type("referral")).points_awarded == 100
    assert await sql_store.get_task_by_id(999) is None

    rewards = await sql_store.get_rewards_by_level(3)
    assert [r.required_level for r in rewards] == [2, 3]
    assert await seed_catalog(sql_store) == (0, 0)


async def test_rewards_by_level_skips_inactive(sql_store):
    await sql_store.create_reward("Retired", "No longer offered", 2, 100, "discount", "OLD", is_active=False)

    rewards = await sql_store.get_rewards_by_level(3)

    assert "Retired" not in [r.name for r in rewards]
    assert [r.required_level for r in rewards] == [2, 3]
    assert len(await sql_store.list_all_rewards()) == 5
    assert await seed_catalog(sql_store) == (0, 0)


async def test_service_flow_on_sql(sql_store):
    """Signup, referral and task completion behave the same on the SQL store."""
    service = WaitlistService(sql_store)

    referrer = await service.signup("ref@mail.com")
    await service.signup("new@mail.com", referral_code=referrer.referral_code)
    result = await service.complete_task("ref@mail.com", 3)

    assert result.entry.points == 225
    assert result.entry.level == 2
    assert result.entry.unlocked_rewards == ["exclusive_preview"]
    assert (await service.complete_task("ref@mail.com", 3)).already_completed is True


async def test_modify_entry_writes_once(sql_store):
    entry = await sql_store.create_entry(NewEntry(email="a@mail.com"))

    updated, outcome = await sql_store.modify_entry("a@mail.com", lambda e: ({"points": e.points + 5}, "done"))
    unchanged, nothing = await sql_store.modify_entry("a@mail.com", lambda e: ({}, None))

    assert outcome == "done"
    assert updated.points == 5
    assert nothing is None
    assert unchanged.points == 5
    assert (await sql_store.get_by_id(entry.id)).points == 5


async def test_modify_entry_missing(sql_store):
    with pytest.raises(EntryNotFoundError):
        await sql_store.modify_entry("ghost@mail.com", lambda e: ({"points": 1}, None))


@pytest_asyncio.fixture
async def second_store(tmp_path, sql_store) -> AsyncGenerator[SqlStore, None]:
    """Another store on the same database file, as a second worker process would have."""
    store = SqlStore(f"sqlite+aiosqlite:///{tmp_path / 'waitlist.db'}")
    await store.init()
    yield store
    await store.close()


async def test_concurrent_increments_across_stores(sql_store, second_store):
    await sql_store.create_entry(NewEntry(email="a@mail.com"))

    def bump(entry):
        return {"points": entry.points + 1}, None

    stores = [sql_store, second_store] * 10
    await asyncio.gather(*(s.modify_entry("a@mail.com", bump) for s in stores))

    assert (await sql_store.get_by_email("a@mail.com")).points == 20


async def test_two_workers_complete_different_tasks(sql_store, second_store):
    """Services with separate in-process locks on one database keep both awards."""
    worker_a = WaitlistService(sql_store)
    worker_b = WaitlistService(second_store)
    await worker_a.signup("a@mail.com")

    results = await asyncio.gather(
        worker_a.complete_task("a@mail.com", 3),
        worker_b.complete_task("a@mail.com", 4),
    )

    assert [r.already_completed for r in results] == [False, False]
    stored = await sql_store.get_by_email("a@mail.com")
    assert stored.points == 175
    assert stored.task_completions == {"1": True, "3": True, "4": True}
    assert stored.level == 2
    assert stored.unlocked_rewards == ["exclusive_preview"]


async def test_two_workers_complete_same_task(sql_store, second_store):
    worker_a = WaitlistService(sql_store)
    worker_b = WaitlistService(second_store)
    await worker_a.signup("a@mail.com")

    results = await asyncio.gather(
        worker_a.complete_task("a@mail.com", 3),
        worker_b.complete_task("a@mail.com", 3),
    )

    assert sorted(r.already_completed for r in results) == [False, True]
    assert sum(r.level_up.leveled_up for r in results) == 1
    assert (await sql_store.get_by_email("a@mail.com")).points == 125
