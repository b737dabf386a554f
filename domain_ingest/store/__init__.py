"""
Store package: the keyed record store interface and its implementations.
"""

from __future__ import annotations

from typing import Optional

from domain_ingest.config import Settings, get_settings
from domain_ingest.exceptions import ConfigurationError
from domain_ingest.store.abstract import AtomicUpsertStore, KeyedRecordStore
from domain_ingest.store.memory import InMemoryRecordStore
from domain_ingest.store.postgres import PostgresRecordStore


def build_store(settings: Optional[Settings] = None, backend: Optional[str] = None) -> KeyedRecordStore:
    """Build the store named by `backend` (default: settings.store_backend)."""
    settings = settings or get_settings()
    name = backend or settings.store_backend
    if name == "postgres":
        return PostgresRecordStore()
    if name == "memory":
        return InMemoryRecordStore()
    raise ConfigurationError(f"Unknown store backend '{name}'. Available: memory, postgres")


__all__ = [
    "AtomicUpsertStore",
    "InMemoryRecordStore",
    "KeyedRecordStore",
    "PostgresRecordStore",
    "build_store",
]
