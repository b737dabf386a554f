"""
Keyed record store interface.

Rows are keyed by `domain`; a store never holds two rows with the same
domain. The pipeline's default upsert is two round trips (`find_by_key`, then
`insert` or `update`); stores that can do it in one statement also implement
`AtomicUpsertStore`.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

from domain_ingest.domain.models import DomainRow


@runtime_checkable
class KeyedRecordStore(Protocol):
    def find_by_key(self, domain: str) -> Optional[DomainRow]:
        """Return the row stored under `domain`, or None."""
        ...

    def insert(self, row: DomainRow) -> DomainRow:
        """Insert a full row; raises StoreError if the key already exists."""
        ...

    def update(self, domain: str, fields: Mapping[str, Any]) -> DomainRow:
        """Overwrite the given mutable fields of an existing row."""
        ...

    def find_missing_estimates(self) -> List[DomainRow]:
        """Rows whose estimation_price is null or zero."""
        ...


@runtime_checkable
class AtomicUpsertStore(KeyedRecordStore, Protocol):
    def upsert(self, row: DomainRow) -> Tuple[DomainRow, bool]:
        """Insert-or-replace by key in one step; returns (row, created)."""
        ...


__all__ = ["AtomicUpsertStore", "KeyedRecordStore"]
