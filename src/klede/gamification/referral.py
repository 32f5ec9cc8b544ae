"""Referral code generation and lookup.

Codes are 8 uppercase hex characters derived from the email and a
millisecond timestamp. They are hard to guess in practice but are not a
security token.
"""

from __future__ import annotations

import hashlib
import time

from klede.waitlist.models import WaitlistEntry
from klede.waitlist.store import EntryStore

REFERRAL_CODE_LENGTH = 8


def generate_referral_code(email: str, timestamp_ms: int | None = None) -> str:
    """Hash ``email`` + timestamp with SHA-256 and keep the first 8 hex chars, uppercased."""
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    digest = hashlib.sha256(f"{email}{timestamp_ms}".encode()).hexdigest()
    return digest[:REFERRAL_CODE_LENGTH].upper()


async def generate_unique_referral_code(store: EntryStore, email: str) -> str:
    """Generate a referral code that no existing entry uses yet."""
    timestamp_ms = time.time_ns() // 1_000_000
    for attempt in range(10):
        code = generate_referral_code(email, timestamp_ms + attempt)
        if await store.get_by_referral_code(code) is None:
            return code
    raise RuntimeError("Failed to generate unique referral code after 10 attempts")


async def resolve_referrer(store: EntryStore, code: str | None) -> WaitlistEntry | None:
    """Return the entry owning ``code``, or None. Unknown codes are not an error."""
    if not code:
        return None
    return await store.get_by_referral_code(code)
