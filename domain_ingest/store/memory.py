"""
In-memory record store for dry runs and tests.

Same keyed semantics as the PostgreSQL store: unique domains, store-assigned
ids and timestamps, full-row insert, field-restricted update.
"""

from __future__ import annotations

import itertools
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from domain_ingest.domain.models import MUTABLE_FIELDS, DomainRow
from domain_ingest.exceptions import StoreError


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryRecordStore:
    name: str = "memory"

    def __init__(self) -> None:
        self._rows: Dict[str, DomainRow] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._rows)

    def all(self) -> List[DomainRow]:
        with self._lock:
            return sorted(self._rows.values(), key=lambda row: row.id or 0)

    def find_by_key(self, domain: str) -> Optional[DomainRow]:
        with self._lock:
            return self._rows.get(domain)

    def _insert_locked(self, row: DomainRow) -> DomainRow:
        if row.domain in self._rows:
            raise StoreError(f"duplicate key: {row.domain}")
        now = _now()
        stored = row.model_copy(update={"id": next(self._ids), "created_at": now, "updated_at": now})
        self._rows[row.domain] = stored
        return stored

    def _update_locked(self, domain: str, fields: Mapping[str, Any]) -> DomainRow:
        existing = self._rows.get(domain)
        if existing is None:
            raise StoreError(f"no row for domain: {domain}")
        unknown = set(fields) - set(MUTABLE_FIELDS)
        if unknown:
            raise StoreError(f"fields are not updatable: {', '.join(sorted(unknown))}")
        stored = existing.model_copy(update={**fields, "updated_at": _now()})
        self._rows[domain] = stored
        return stored

    def insert(self, row: DomainRow) -> DomainRow:
        with self._lock:
            return self._insert_locked(row)

    def update(self, domain: str, fields: Mapping[str, Any]) -> DomainRow:
        with self._lock:
            return self._update_locked(domain, fields)

    def upsert(self, row: DomainRow) -> Tuple[DomainRow, bool]:
        with self._lock:
            if row.domain in self._rows:
                return self._update_locked(row.domain, row.mutable_fields()), False
            return self._insert_locked(row), True

    def find_missing_estimates(self) -> List[DomainRow]:
        return [row for row in self.all() if not row.estimation_price]


__all__ = ["InMemoryRecordStore"]
