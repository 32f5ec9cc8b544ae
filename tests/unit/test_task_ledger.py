"""Task completion tests — point awards, idempotence and level-ups."""

import asyncio

import pytest

from klede.gamification.locks import KeyedLock
from klede.gamification.task_ledger import complete_task, complete_task_by_type
from klede.waitlist.errors import EntryNotFoundError, TaskNotFoundError
from klede.waitlist.models import NewEntry

pytestmark = pytest.mark.asyncio

SHARE_TASK_ID = 3  # "Share on Social Media", 75 points
REFER_TASK_ID = 2  # "Refer a Friend", 100 points


async def test_awards_points(store):
    await store.create_entry(NewEntry(email="a@mail.com"))

    result = await complete_task(store, "a@mail.com", SHARE_TASK_ID)

    assert result.already_completed is False
    assert result.entry.points == 75
    assert result.entry.has_completed(SHARE_TASK_ID)
    assert result.level_up.leveled_up is False


async def test_second_completion_is_noop(store):
    await store.create_entry(NewEntry(email="a@mail.com"))
    await complete_task(store, "a@mail.com", SHARE_TASK_ID)

    again = await complete_task(store, "a@mail.com", SHARE_TASK_ID)

    assert again.already_completed is True
    assert again.entry.points == 75
    assert again.level_up.leveled_up is False


async def test_level_up_reported(store):
    await store.create_entry(NewEntry(email="a@mail.com"))

    result = await complete_task(store, "a@mail.com", REFER_TASK_ID)

    assert result.entry.points == 100
    assert result.entry.level == 2
    assert result.level_up.leveled_up is True
    assert result.level_up.new_level == 2
    assert result.level_up.unlocked_rewards == ["exclusive_preview"]
    assert result.entry.unlocked_rewards == ["exclusive_preview"]


async def test_unknown_email(store):
    with pytest.raises(EntryNotFoundError):
        await complete_task(store, "ghost@mail.com", SHARE_TASK_ID)


async def test_unknown_task(store):
    await store.create_entry(NewEntry(email="a@mail.com"))
    with pytest.raises(TaskNotFoundError):
        await complete_task(store, "a@mail.com", 999)
    entry = await store.get_by_email("a@mail.com")
    assert entry.points == 0


async def test_complete_by_type(store):
    await store.create_entry(NewEntry(email="a@mail.com"))

    result = await complete_task_by_type(store, "a@mail.com", "signup")

    assert result.entry.points == 50
    assert result.entry.has_completed(1)


async def test_complete_by_unknown_type(store):
    await store.create_entry(NewEntry(email="a@mail.com"))
    with pytest.raises(TaskNotFoundError):
        await complete_task_by_type(store, "a@mail.com", "no_such_type")


async def test_concurrent_completions_award_once(store):
    """Many concurrent completions of one task under the entry lock award points once."""
    await store.create_entry(NewEntry(email="a@mail.com"))
    locks = KeyedLock()

    async def attempt():
        async with locks("a@mail.com"):
            return await complete_task(store, "a@mail.com", SHARE_TASK_ID)

    results = await asyncio.gather(*(attempt() for _ in range(10)))

    assert sum(1 for r in results if not r.already_completed) == 1
    entry = await store.get_by_email("a@mail.com")
    assert entry.points == 75
