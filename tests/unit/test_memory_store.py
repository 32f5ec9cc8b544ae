"""In-memory store tests."""

import pytest

from klede.waitlist.errors import DuplicateEmailError, EntryNotFoundError
from klede.waitlist.memory_store import InMemoryStore
from klede.waitlist.models import NewEntry

pytestmark = pytest.mark.asyncio


async def test_create_defaults():
    store = InMemoryStore()

    entry = await store.create_entry(NewEntry(email="a@mail.com", name="Ann", referral_code="AAAA0000"))

    assert entry.id == 1
    assert entry.level == 1
    assert entry.points == 0
    assert entry.task_completions == {}
    assert entry.unlocked_rewards == []
    assert entry.has_received_welcome_email is False
    assert entry.last_interaction_at is not None


async def test_duplicate_email_rejected():
    store = InMemoryStore()
    await store.create_entry(NewEntry(email="a@mail.com"))
    with pytest.raises(DuplicateEmailError):
        await store.create_entry(NewEntry(email="a@mail.com"))


async def test_email_match_is_exact():
    store = InMemoryStore()
    await store.create_entry(NewEntry(email="a@mail.com"))

    assert await store.get_by_email("A@mail.com") is None
    assert await store.get_by_email("a@mail.com") is not None


async def test_reads_are_copies():
    store = InMemoryStore()
    entry = await store.create_entry(NewEntry(email="a@mail.com"))

    entry.task_completions["1"] = True
    entry.points = 500

    stored = await store.get_by_id(entry.id)
    assert stored.task_completions == {}
    assert stored.points == 0


async def test_update_stamps_interaction():
    store = InMemoryStore()
    entry = await store.create_entry(NewEntry(email="a@mail.com"))

    updated = await store.update_entry(entry.id, points=10)

    assert updated.points == 10
    assert updated.last_interaction_at >= entry.last_interaction_at


async def test_update_missing_entry():
    store = InMemoryStore()
    with pytest.raises(EntryNotFoundError):
        await store.update_entry(42, points=1)


async def test_modify_entry_applies_change():
    store = InMemoryStore()
    entry = await store.create_entry(NewEntry(email="a@mail.com"))

    updated, outcome = await store.modify_entry("a@mail.com", lambda e: ({"points": e.points + 5}, "done"))

    assert outcome == "done"
    assert updated.points == 5
    assert updated.last_interaction_at >= entry.last_interaction_at
    assert (await store.get_by_id(entry.id)).points == 5


async def test_modify_entry_without_fields_keeps_entry():
    store = InMemoryStore()
    entry = await store.create_entry(NewEntry(email="a@mail.com"))

    same, outcome = await store.modify_entry("a@mail.com", lambda e: ({}, None))

    assert outcome is None
    assert same.last_interaction_at == entry.last_interaction_at


async def test_modify_entry_missing():
    store = InMemoryStore()
    with pytest.raises(EntryNotFoundError):
        await store.modify_entry("ghost@mail.com", lambda e: ({"points": 1}, None))


async def test_list_all_in_signup_order():
    store = InMemoryStore()
    for email in ["c@mail.com", "a@mail.com", "b@mail.com"]:
        await store.create_entry(NewEntry(email=email))

    assert [e.email for e in await store.list_all()] == ["c@mail.com", "a@mail.com", "b@mail.com"]


async def test_delete_entry():
    store = InMemoryStore()
    entry = await store.create_entry(NewEntry(email="a@mail.com"))

    assert await store.delete_entry(entry.id) is True
    assert await store.delete_entry(entry.id) is False
    assert await store.get_by_email("a@mail.com") is None


async def test_tasks_ordered_by_points(store):
    tasks = await store.list_active_tasks()
    points = [t.points_awarded for t in tasks]
    assert points == sorted(points)
    assert tasks[0].name == "Open Welcome Email"


async def test_inactive_tasks_hidden():
    store = InMemoryStore()
    await store.create_task("On", "Active", 10, "on")
    await store.create_task("Off", "Inactive", 20, "off", is_active=False)

    assert [t.name for t in await store.list_active_tasks()] == ["On"]
    assert len(await store.list_all_tasks()) == 2


async def test_rewards_by_level(store):
    rewards = await store.get_rewards_by_level(3)
    assert [r.required_level for r in rewards] == [2, 3]
    assert await store.get_rewards_by_level(1) == []


async def test_rewards_by_level_skips_inactive(store):
    await store.create_reward("Retired", "No longer offered", 2, 100, "discount", "OLD", is_active=False)

    rewards = await store.get_rewards_by_level(3)

    assert "Retired" not in [r.name for r in rewards]
    assert [r.required_level for r in rewards] == [2, 3]
    assert len(await store.list_all_rewards()) == 5


async def test_ping():
    assert await InMemoryStore().ping() is True
