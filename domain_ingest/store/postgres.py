"""
PostgreSQL record store backed by the `public.suggested_domains` table.

Connections come from the PoolManager pool for the configured (or overridden)
DSN. Each operation runs in its own short transaction. Connection-level
failures surface as `StoreUnavailableError` and abort the run; any other
database error on a statement is a `StoreError` for that record only.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Mapping, Optional, Tuple

import psycopg
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from domain_ingest.domain.models import MUTABLE_FIELDS, DomainRow
from domain_ingest.exceptions import StoreError, StoreUnavailableError
from domain_ingest.infrastructure.db_factory import PoolManager, get_sync_pool

TABLE = sql.Identifier("public", "suggested_domains")
INSERT_FIELDS = ("domain",) + MUTABLE_FIELDS
COLUMNS = sql.SQL(
    "id, domain, price, estimation_price, extension, status, score, drop_time, "
    "crawl_time, tld, length, available, currency, created_at, updated_at"
)
RETURNING = sql.SQL("RETURNING {}").format(COLUMNS)


def _row(record: Dict[str, Any]) -> DomainRow:
    payload = dict(record)
    payload.pop("inserted", None)
    for key in ("price", "estimation_price"):
        if payload.get(key) is not None:
            payload[key] = float(payload[key])
    return DomainRow.model_validate(payload)


class PostgresRecordStore:
    """
    Keyed store over `suggested_domains` (UNIQUE(domain)); also provides the
    single-statement `upsert` via INSERT ... ON CONFLICT.
    """

    name: str = "postgres"

    def __init__(
        self,
        pool_min_size: int = 1,
        pool_max_size: int = 4,
        dsn_override: Optional[str] = None,
    ) -> None:
        self.pool_min_size = pool_min_size
        self.pool_max_size = pool_max_size
        self._dsn_override = dsn_override
        self._pool_instance: ConnectionPool | None = None

    def _get_pool(self) -> ConnectionPool:
        if self._pool_instance is None:
            self._pool_instance = get_sync_pool(
                dsn=self._dsn_override, min_size=self.pool_min_size, max_size=self.pool_max_size
            )
        return self._pool_instance

    def close(self) -> None:
        """Close the managed pool for this store's DSN."""
        if self._pool_instance is not None:
            PoolManager().close_pool(self._dsn_override)
        self._pool_instance = None

    @contextmanager
    def _cursor(self) -> Generator[psycopg.Cursor, None, None]:
        try:
            with self._get_pool().connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    yield cur
        except (psycopg.OperationalError, psycopg.InterfaceError, PoolTimeout) as exc:
            raise StoreUnavailableError(f"record store unreachable: {exc}") from exc
        except psycopg.Error as exc:
            raise StoreError(str(exc)) from exc

    def find_by_key(self, domain: str) -> Optional[DomainRow]:
        query = sql.SQL("SELECT {columns} FROM {table} WHERE domain = %s LIMIT 1").format(
            columns=COLUMNS, table=TABLE
        )
        with self._cursor() as cur:
            cur.execute(query, (domain,))
            record = cur.fetchone()
        return _row(record) if record else None

    def insert(self, row: DomainRow) -> DomainRow:
        values = row.model_dump(include=set(INSERT_FIELDS))
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values}) {returning}").format(
            table=TABLE,
            columns=sql.SQL(", ").join(map(sql.Identifier, INSERT_FIELDS)),
            values=sql.SQL(", ").join(map(sql.Placeholder, INSERT_FIELDS)),
            returning=RETURNING,
        )
        with self._cursor() as cur:
            cur.execute(query, values)
            record = cur.fetchone()
        return _row(record)

    def update(self, domain: str, fields: Mapping[str, Any]) -> DomainRow:
        unknown = set(fields) - set(MUTABLE_FIELDS)
        if unknown:
            raise StoreError(f"fields are not updatable: {', '.join(sorted(unknown))}")
        if not fields:
            existing = self.find_by_key(domain)
            if existing is None:
                raise StoreError(f"no row for domain: {domain}")
            return existing
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = {}").format(sql.Identifier(name), sql.Placeholder(name)) for name in fields
        )
        query = sql.SQL(
            "UPDATE {table} SET {assignments}, updated_at = now() "
            "WHERE domain = {domain} {returning}"
        ).format(
            table=TABLE,
            assignments=assignments,
            domain=sql.Placeholder("__domain"),
            returning=RETURNING,
        )
        with self._cursor() as cur:
            cur.execute(query, {**fields, "__domain": domain})
            record = cur.fetchone()
        if record is None:
            raise StoreError(f"no row for domain: {domain}")
        return _row(record)

    def upsert(self, row: DomainRow) -> Tuple[DomainRow, bool]:
        values = row.model_dump(include=set(INSERT_FIELDS))
        query = sql.SQL(
            "INSERT INTO {table} ({columns}) VALUES ({values}) "
            "ON CONFLICT (domain) DO UPDATE SET {assignments}, updated_at = now() "
            "{returning}, (xmax = 0) AS inserted"
        ).format(
            table=TABLE,
            columns=sql.SQL(", ").join(map(sql.Identifier, INSERT_FIELDS)),
            values=sql.SQL(", ").join(map(sql.Placeholder, INSERT_FIELDS)),
            assignments=sql.SQL(", ").join(
                sql.SQL("{col} = EXCLUDED.{col}").format(col=sql.Identifier(name))
                for name in MUTABLE_FIELDS
            ),
            returning=RETURNING,
        )
        with self._cursor() as cur:
            cur.execute(query, values)
            record = cur.fetchone()
        return _row(record), bool(record["inserted"])

    def find_missing_estimates(self) -> List[DomainRow]:
        query = sql.SQL(
            "SELECT {columns} FROM {table} "
            "WHERE estimation_price IS NULL OR estimation_price = 0 ORDER BY id"
        ).format(columns=COLUMNS, table=TABLE)
        with self._cursor() as cur:
            cur.execute(query)
            records = cur.fetchall()
        return [_row(record) for record in records]


__all__ = ["PostgresRecordStore"]
