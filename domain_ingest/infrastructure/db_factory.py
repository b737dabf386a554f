"""
Database connectivity for the PostgreSQL record store.

Pools are owned by a process-wide `PoolManager`, one per DSN, and closed at
interpreter exit. Schema bootstrap and other one-off work goes through
`get_sync_connection`, which retries transient connect failures with tenacity.

Usage:
    from domain_ingest.infrastructure.db_factory import get_sync_pool

    pool = get_sync_pool(max_size=4)
    with pool.connection() as conn:
        conn.execute("SELECT count(*) FROM public.suggested_domains")
"""

from __future__ import annotations

import atexit
import threading
from typing import Dict, Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from domain_ingest.config import Settings, get_settings
from domain_ingest.utils.logging import get_logger

log = get_logger(__name__)

_TRANSIENT_ERRORS = (psycopg.OperationalError, psycopg.InterfaceError)


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    settings = settings or get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


def _redacted(dsn: str) -> str:
    scheme, sep, rest = dsn.partition("://")
    if "@" not in rest:
        return dsn
    return f"{scheme}{sep}***@{rest.split('@', 1)[1]}"


class PoolManager:
    """
    Process-wide registry of connection pools keyed by DSN.

    The first `PoolManager()` call creates the singleton and registers
    `close_all` with atexit.
    """

    _instance: Optional["PoolManager"] = None
    _lock = threading.Lock()
    _pools: Dict[str, ConnectionPool]

    def __new__(cls) -> "PoolManager":
        with cls._lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._pools = {}
                atexit.register(instance.close_all)
                cls._instance = instance
            return cls._instance

    def get_pool(
        self, dsn: Optional[str] = None, min_size: int = 1, max_size: int = 4
    ) -> ConnectionPool:
        """
        Return the pool for `dsn` (default: the settings DSN), opening it on first use.

        Sizes only apply when the pool is created.
        """
        conninfo = dsn or build_dsn()
        with self._lock:
            pool = self._pools.get(conninfo)
            if pool is None:
                log.debug(
                    "Opening connection pool",
                    extra={"dsn": _redacted(conninfo), "min_size": min_size, "max_size": max_size},
                )
                pool = ConnectionPool(conninfo=conninfo, min_size=min_size, max_size=max_size, open=True)
                self._pools[conninfo] = pool
            return pool

    def close_pool(self, dsn: Optional[str] = None) -> None:
        with self._lock:
            pool = self._pools.pop(dsn or build_dsn(), None)
        if pool is not None:
            pool.close()

    def close_all(self) -> None:
        """Close every managed pool. Registered with atexit."""
        with self._lock:
            pools, self._pools = list(self._pools.values()), {}
        for pool in pools:
            pool.close()


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(_TRANSIENT_ERRORS),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Open a dedicated connection, retrying transient connect failures.

    Raises
    ------
    psycopg.OperationalError
        If the database is still unreachable after three attempts.
    """
    return psycopg.connect(dsn or build_dsn())


def get_sync_pool(dsn: Optional[str] = None, min_size: int = 1, max_size: int = 4) -> ConnectionPool:
    return PoolManager().get_pool(dsn=dsn, min_size=min_size, max_size=max_size)


__all__ = [
    "PoolManager",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
