from __future__ import annotations

import threading
from pathlib import Path

import pytest

from domain_ingest.domain.models import AvailabilityQuote, AvailabilityResult, CandidateRecord, DomainRow
from domain_ingest.exceptions import LookupFailure, StoreError, StoreUnavailableError
from domain_ingest.lookup.mock import MockLookupService
from domain_ingest.pipeline import IngestionPipeline, PipelineConfig, PipelineState, reestimate_missing
from domain_ingest.store.memory import InMemoryRecordStore
from domain_ingest.valuation.estimator import estimate_value
from domain_ingest.valuation.scorer import score_domain, score_enhanced
from tests.conftest import FIVE_ROW_FEED

ACCEPTED_DOMAINS = {"homebuilder.com", "smartdata.com", "zest.com"}
KEEP_SOURCE = PipelineConfig(delete_source=False, chunk_delay_seconds=0)


def _pipeline(store, lookup=None, config: PipelineConfig = KEEP_SOURCE, **kwargs) -> IngestionPipeline:
    return IngestionPipeline(store=store, lookup=lookup or MockLookupService(), config=config, **kwargs)


class _TrackingLookup(MockLookupService):
    def __init__(self, failing: set[str] | None = None) -> None:
        super().__init__()
        self.failing = failing or set()
        self.closed = 0

    async def check_availability(self, domain: str) -> AvailabilityQuote:
        if domain in self.failing:
            raise LookupFailure(domain, "HTTP 503")
        return await super().check_availability(domain)

    async def aclose(self) -> None:
        self.closed += 1


class _FlakyStore(InMemoryRecordStore):
    def __init__(self, broken: str) -> None:
        super().__init__()
        self.broken = broken

    def insert(self, row: DomainRow) -> DomainRow:
        if row.domain == self.broken:
            raise StoreError("value too long for column")
        return super().insert(row)


class _DownStore(InMemoryRecordStore):
    def find_by_key(self, domain: str):
        raise StoreUnavailableError("connection refused")


class _TwoStepOnlyStore:
    def __init__(self) -> None:
        self._inner = InMemoryRecordStore()

    def find_by_key(self, domain):
        return self._inner.find_by_key(domain)

    def insert(self, row):
        return self._inner.insert(row)

    def update(self, domain, fields):
        return self._inner.update(domain, fields)

    def find_missing_estimates(self):
        return self._inner.find_missing_estimates()


def test_first_run_inserts_and_second_run_updates(feed_path: Path, memory_store, no_sleep) -> None:
    pipeline = _pipeline(memory_store, sleep=no_sleep)

    first = pipeline.run(feed_path)
    second = pipeline.run(feed_path)

    assert first == {"checked": 3, "inserted": 3, "updated": 0, "total": 3, "errors": 0}
    assert second == {"checked": 3, "inserted": 0, "updated": 3, "total": 3, "errors": 0}
    assert {row.domain for row in memory_store.all()} == ACCEPTED_DOMAINS
    assert pipeline.state is PipelineState.DONE
    assert feed_path.exists()


def test_atomic_upsert_mode_gives_same_counts(feed_path: Path, memory_store, no_sleep) -> None:
    config = PipelineConfig(delete_source=False, chunk_delay_seconds=0, upsert_mode="atomic")
    pipeline = _pipeline(memory_store, config=config, sleep=no_sleep)

    assert pipeline.run(feed_path)["inserted"] == 3
    assert pipeline.run(feed_path)["updated"] == 3
    assert len(memory_store) == 3


def test_atomic_mode_requires_upsert_capable_store() -> None:
    config = PipelineConfig(upsert_mode="atomic")
    with pytest.raises(ValueError):
        _pipeline(_TwoStepOnlyStore(), config=config)
    assert _pipeline(_TwoStepOnlyStore()).config.upsert_mode == "two_step"


def test_source_is_deleted_after_success(feed_path: Path, memory_store, no_sleep) -> None:
    config = PipelineConfig(delete_source=True, chunk_delay_seconds=0)
    _pipeline(memory_store, config=config, sleep=no_sleep).run(feed_path)
    assert not feed_path.exists()


def test_store_errors_are_counted_not_raised(feed_path: Path, no_sleep) -> None:
    store = _FlakyStore(broken="zest.com")
    summary = _pipeline(store, sleep=no_sleep).run(feed_path)

    assert summary == {"checked": 3, "inserted": 2, "updated": 0, "total": 3, "errors": 1}
    assert store.find_by_key("zest.com") is None


def test_unreachable_store_fails_run_and_releases_source(feed_path: Path, no_sleep) -> None:
    config = PipelineConfig(delete_source=True, chunk_delay_seconds=0)
    pipeline = _pipeline(_DownStore(), config=config, sleep=no_sleep)

    with pytest.raises(StoreUnavailableError):
        pipeline.run(feed_path)
    assert pipeline.state is PipelineState.FAILED
    assert not feed_path.exists()


def test_missing_source_is_fatal(tmp_path: Path, memory_store, no_sleep) -> None:
    pipeline = _pipeline(memory_store, config=PipelineConfig(chunk_delay_seconds=0), sleep=no_sleep)

    with pytest.raises(FileNotFoundError):
        pipeline.run(tmp_path / "missing.csv")
    assert pipeline.state is PipelineState.FAILED
    assert len(memory_store) == 0


def test_failed_lookup_keeps_feed_values(feed_path: Path, memory_store, no_sleep) -> None:
    lookup = _TrackingLookup(failing={"zest.com"})
    summary = _pipeline(memory_store, lookup, sleep=no_sleep).run(feed_path)

    row = memory_store.find_by_key("zest.com")
    assert summary["errors"] == 0
    assert row.status == "Premium"
    assert row.price == 1200.0
    assert row.available is False
    assert row.score == score_domain("zest.com", 1200.0, 8, "Premium")
    assert lookup.closed == 1


def test_progress_callback_sees_running_counts(feed_path: Path, memory_store, no_sleep) -> None:
    seen: list[dict] = []
    _pipeline(memory_store, sleep=no_sleep, on_progress=seen.append).run(feed_path)
    assert [counts["checked"] for counts in seen] == [1, 2, 3]
    assert seen[-1]["inserted"] == 3


def test_stage_stats_are_recorded(feed_path: Path, memory_store, no_sleep) -> None:
    pipeline = _pipeline(memory_store, sleep=no_sleep)
    pipeline.run(feed_path)

    assert [stage.label for stage in pipeline.stage_stats] == ["sampling", "checking", "persisting"]
    assert pipeline.stage_stats[0].items == 3
    assert pipeline.sample_stats.rejected == 2
    assert len(pipeline.scored) == 3


def test_score_candidate_uses_lookup_answer() -> None:
    pipeline = _pipeline(InMemoryRecordStore())
    candidate = CandidateRecord(domain="zest.com", raw_price="79", length=8, status="Available Soon")
    result = AvailabilityResult.from_quote("zest.com", AvailabilityQuote(available=True, price=12.0))

    scored = pipeline.score_candidate(candidate, result)

    assert scored.status == "Available"
    assert scored.price == 12.0
    assert scored.score == score_enhanced("zest.com", 12.0, 8, "Available", True)
    assert scored.estimated_price == estimate_value("zest.com", scored.score, 8, "")


def test_score_candidate_falls_back_to_feed_price() -> None:
    pipeline = _pipeline(InMemoryRecordStore())
    candidate = CandidateRecord(domain="zest.com", raw_price="79", length=8)
    result = AvailabilityResult.from_quote("zest.com", AvailabilityQuote(available=False))
    assert pipeline.score_candidate(candidate, result).price == 79.0



def test_unparseable_feed_row_does_not_abort_run(tmp_path: Path, memory_store, no_sleep) -> None:
    lines = FIVE_ROW_FEED.splitlines()
    lines.insert(2, "huge.com,10,,,.com,.com,8," + "x" * 200_000)
    path = tmp_path / "feed.csv"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    config = PipelineConfig(delete_source=True, chunk_delay_seconds=0)
    pipeline = _pipeline(memory_store, config=config, sleep=no_sleep)

    summary = pipeline.run(path)

    assert summary == {"checked": 3, "inserted": 3, "updated": 0, "total": 3, "errors": 0}
    assert {row.domain for row in memory_store.all()} == ACCEPTED_DOMAINS
    assert memory_store.find_by_key("huge.com") is None
    assert pipeline.state is PipelineState.DONE
    assert pipeline.sample_stats.rejected == 3
    assert not path.exists()


@pytest.mark.asyncio
async def test_run_async_reads_feed_off_the_event_loop_thread(feed_path: Path, memory_store, no_sleep) -> None:
    threads: list[int] = []

    class _RecordingPipeline(IngestionPipeline):
        def _sample(self, path):
            threads.append(threading.get_ident())
            return super()._sample(path)

    pipeline = _RecordingPipeline(store=memory_store, lookup=MockLookupService(), config=KEEP_SOURCE, sleep=no_sleep)

    assert (await pipeline.run_async(feed_path))["inserted"] == 3
    assert threads and threads[0] != threading.get_ident()


@pytest.mark.asyncio
async def test_sync_run_refuses_running_loop(feed_path: Path, memory_store, no_sleep) -> None:
    pipeline = _pipeline(memory_store, sleep=no_sleep)
    with pytest.raises(RuntimeError):
        pipeline.run(feed_path)
    assert (await pipeline.run_async(feed_path))["inserted"] == 3


def test_reestimate_missing_fills_only_missing_values(memory_store) -> None:
    memory_store.insert(DomainRow(domain="abc.com", tld=".com"))
    memory_store.insert(DomainRow(domain="go.io", extension=".io", score=100, length=3, estimation_price=0))
    memory_store.insert(DomainRow(domain="kept.com", estimation_price=999))

    summary = reestimate_missing(memory_store)

    assert summary == {"scanned": 2, "updated": 2, "errors": 0}
    # score defaults to 50 and length to len("abc.com")
    assert memory_store.find_by_key("abc.com").estimation_price == 1500
    assert memory_store.find_by_key("go.io").estimation_price == 7200
    assert memory_store.find_by_key("kept.com").estimation_price == 999
