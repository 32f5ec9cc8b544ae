"""Admin operations: broadcasts and CSV export."""

from __future__ import annotations

import asyncio
import csv
import io
from collections.abc import Awaitable, Callable

import structlog

from klede.waitlist.models import WaitlistEntry

logger = structlog.get_logger()

CSV_COLUMNS = [
    "id",
    "email",
    "name",
    "referral_source",
    "level",
    "points",
    "referral_code",
    "referred_by",
    "has_received_welcome_email",
    "created_at",
]


async def broadcast(
    entries: list[WaitlistEntry],
    send: Callable[[str], Awaitable[bool]],
    max_concurrency: int = 10,
) -> tuple[int, list[str]]:
    """
    Send one email per entry, at most ``max_concurrency`` at a time.

    A send that returns False or raises counts as failed; one failure
    never stops the others.

    Returns:
        (sent_count, failed_emails) with failures in entry order.
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def send_limited(email: str) -> bool:
        async with semaphore:
            return await send(email)

    results = await asyncio.gather(*(send_limited(e.email) for e in entries), return_exceptions=True)

    failed: list[str] = []
    for entry, result in zip(entries, results):
        if isinstance(result, BaseException):
            logger.warning("broadcast_send_error", entry_id=entry.id, error=str(result))
            failed.append(entry.email)
        elif not result:
            failed.append(entry.email)

    return len(entries) - len(failed), failed


def export_csv(entries: list[WaitlistEntry]) -> str:
    """Render entries as CSV with a header row."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_COLUMNS)
    for e in entries:
        writer.writerow([
            e.id,
            e.email,
            e.name or "",
            e.referral_source or "",
            e.level,
            e.points,
            e.referral_code or "",
            e.referred_by or "",
            "yes" if e.has_received_welcome_email else "no",
            e.created_at.isoformat(),
        ])
    return buf.getvalue()
