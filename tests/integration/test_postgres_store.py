"""
Integration tests for the PostgreSQL record store.

These require a running PostgreSQL reachable through the DB_* environment
variables and are skipped otherwise.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from domain_ingest.domain.models import DomainRow
from domain_ingest.exceptions import StoreError
from domain_ingest.lookup.mock import MockLookupService
from domain_ingest.pipeline import IngestionPipeline, PipelineConfig, reestimate_missing
from domain_ingest.store.postgres import PostgresRecordStore

pytestmark = pytest.mark.integration


@pytest.fixture
def pg_store(test_dsn: str, clean_domains_table):
    store = PostgresRecordStore(dsn_override=test_dsn)
    try:
        yield store
    finally:
        store.close()


def _row(domain: str = "zest.com", **fields) -> DomainRow:
    return DomainRow(domain=domain, price=79.0, status="Available", score=70, **fields)


def test_insert_find_update(pg_store: PostgresRecordStore) -> None:
    inserted = pg_store.insert(_row(estimation_price=1500.0))
    assert inserted.id is not None
    assert inserted.created_at is not None

    found = pg_store.find_by_key("zest.com")
    assert found == inserted

    updated = pg_store.update("zest.com", {"score": 90, "status": "Taken"})
    assert (updated.id, updated.score, updated.status, updated.price) == (inserted.id, 90, "Taken", 79.0)
    assert updated.updated_at >= inserted.updated_at


def test_unique_domain_and_update_errors(pg_store: PostgresRecordStore) -> None:
    pg_store.insert(_row())
    with pytest.raises(StoreError):
        pg_store.insert(_row())
    with pytest.raises(StoreError):
        pg_store.update("missing.com", {"score": 1})
    with pytest.raises(StoreError):
        pg_store.update("zest.com", {"domain": "other.com"})


def test_atomic_upsert(pg_store: PostgresRecordStore) -> None:
    first, created = pg_store.upsert(_row())
    second, created_again = pg_store.upsert(_row(price=120.0))

    assert created is True
    assert created_again is False
    assert second.id == first.id
    assert second.price == 120.0


def test_pipeline_and_reestimate_against_postgres(pg_store: PostgresRecordStore, feed_path: Path) -> None:
    config = PipelineConfig(delete_source=False, chunk_delay_seconds=0)
    pipeline = IngestionPipeline(pg_store, MockLookupService(), config=config)

    assert pipeline.run(feed_path)["inserted"] == 3
    assert pipeline.run(feed_path)["updated"] == 3

    pg_store.update("zest.com", {"estimation_price": None})
    assert reestimate_missing(pg_store) == {"scanned": 1, "updated": 1, "errors": 0}
    assert pg_store.find_missing_estimates() == []

