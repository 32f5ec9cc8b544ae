"""Entry store factory — picks the implementation from configuration."""

from __future__ import annotations

from klede.config import Settings
from klede.waitlist.memory_store import InMemoryStore
from klede.waitlist.sql_store import SqlStore
from klede.waitlist.store import EntryStore


def create_store(settings: Settings) -> EntryStore:
    """Create the configured entry store. The caller is responsible for ``init()``."""
    backend = settings.storage_backend.lower()

    if backend == "memory":
        return InMemoryStore()
    if backend == "database":
        return SqlStore(settings.database_url, create_tables=settings.database_create_tables)
    msg = f"Unsupported storage backend: {backend}"
    raise ValueError(msg)
