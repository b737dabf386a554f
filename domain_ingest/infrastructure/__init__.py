"""
Infrastructure package for the domain ingestion pipeline.

Centralizes database connectivity concerns (DSN, pooling, retrying connects).
Keep this layer focused on I/O and resource management, decoupled from the
pipeline and valuation logic.
"""

from domain_ingest.infrastructure.db_factory import (
    PoolManager,
    build_dsn,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "PoolManager",
    "build_dsn",
    "get_sync_connection",
    "get_sync_pool",
]
