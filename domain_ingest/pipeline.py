"""
Ingestion pipeline: sample a CSV feed, check availability, value and upsert.

Usage (example from CLI):
    from domain_ingest.pipeline import IngestionPipeline, PipelineConfig

    pipeline = IngestionPipeline(store=build_store(), lookup=build_lookup_service())
    summary = pipeline.run("feeds/dropping-2025-08-23.csv")
    print(summary)  # {"checked": 20, "inserted": 17, "updated": 3, "total": 20, "errors": 0}

A run walks SAMPLING -> CHECKING -> PERSISTING -> DONE; any exception that
escapes a stage moves it to FAILED and is re-raised. Lookup failures and
per-record store errors do not escape: they are folded into the counts. The
source feed is deleted once per run, whichever way the run ends.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Literal, Optional, Sequence, TypedDict

from domain_ingest.config import Settings, get_settings
from domain_ingest.domain.models import AvailabilityResult, CandidateRecord, ScoredRecord
from domain_ingest.exceptions import StoreError
from domain_ingest.lookup.abstract import DomainLookupService
from domain_ingest.lookup.batcher import SleepFn, batch_check
from domain_ingest.sampling import SampleStats, sample_candidates
from domain_ingest.store.abstract import AtomicUpsertStore, KeyedRecordStore
from domain_ingest.utils.logging import get_logger
from domain_ingest.utils.profiler import ProfileStats, profile_block
from domain_ingest.valuation.estimator import estimate_value
from domain_ingest.valuation.rules import DEFAULT_RULES, ValuationRules
from domain_ingest.valuation.scorer import score_domain, score_enhanced

log = get_logger(__name__)

UpsertMode = Literal["two_step", "atomic"]
ProgressCallback = Callable[[Dict[str, int]], None]


class PipelineState(str, Enum):
    PENDING = "pending"
    SAMPLING = "sampling"
    CHECKING = "checking"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class IngestSummary(TypedDict):
    checked: int
    inserted: int
    updated: int
    total: int
    errors: int


class ReestimateSummary(TypedDict):
    scanned: int
    updated: int
    errors: int


@dataclass(frozen=True)
class PipelineConfig:
    accepted_tld: str = ".com"
    sample_window: int = 200
    max_selected: int = 20
    concurrency: int = 3
    chunk_delay_seconds: float = 1.0
    delete_source: bool = True
    upsert_mode: UpsertMode = "two_step"

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PipelineConfig":
        settings = settings or get_settings()
        return cls(
            accepted_tld=settings.ingest_accepted_tld,
            sample_window=settings.ingest_sample_window,
            max_selected=settings.ingest_max_selected,
            concurrency=settings.lookup_concurrency,
            chunk_delay_seconds=settings.lookup_chunk_delay_seconds,
            delete_source=settings.ingest_delete_source,
            upsert_mode=settings.upsert_mode,
        )


class IngestionPipeline:
    """
    One feed-to-store run at a time; an instance can be reused for later runs.

    Parameters
    ----------
    store : KeyedRecordStore
        Destination of the upserts.
    lookup : DomainLookupService
        Availability lookups for the sampled candidates.
    config : PipelineConfig, optional
        Sampling, batching and persistence knobs; defaults come from settings.
    rules : ValuationRules, optional
        Scoring and estimation tables.
    rng : random.Random, optional
        Randomness for candidate selection.
    sleep : callable, optional
        Awaitable used for the inter-chunk delay.
    on_progress : callable, optional
        Receives the running counts after every persisted candidate.
    """

    def __init__(
        self,
        store: KeyedRecordStore,
        lookup: DomainLookupService,
        config: Optional[PipelineConfig] = None,
        rules: ValuationRules = DEFAULT_RULES,
        rng: Optional[random.Random] = None,
        sleep: SleepFn = asyncio.sleep,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.store = store
        self.lookup = lookup
        self.config = config or PipelineConfig.from_settings()
        self.rules = rules
        self.rng = rng
        self._sleep = sleep
        self.on_progress = on_progress

        if self.config.upsert_mode not in ("two_step", "atomic"):
            raise ValueError(f"Unknown upsert mode '{self.config.upsert_mode}'")
        if self.config.upsert_mode == "atomic" and not isinstance(store, AtomicUpsertStore):
            raise ValueError(f"{type(store).__name__} has no atomic upsert; use upsert_mode='two_step'")

        self.state = PipelineState.PENDING
        self.stage_stats: List[ProfileStats] = []
        self.sample_stats: Optional[SampleStats] = None
        self.scored: List[ScoredRecord] = []
        self._source_released = False

    # -- state ---------------------------------------------------------------

    def _enter(self, state: PipelineState) -> None:
        log.debug(f"[STATE] {self.state.value} -> {state.value}", extra={"state": state.value})
        self.state = state

    # -- stages --------------------------------------------------------------

    def _sample(self, path: Path) -> List[CandidateRecord]:
        stats = SampleStats()
        with path.open("r", encoding="utf-8-sig", newline="") as handle:
            candidates = sample_candidates(
                handle,
                accepted_tld=self.config.accepted_tld,
                sample_window=self.config.sample_window,
                max_selected=self.config.max_selected,
                rng=self.rng,
                stats=stats,
            )
        self.sample_stats = stats
        return candidates

    async def _check(self, candidates: Sequence[CandidateRecord]) -> List[AvailabilityResult]:
        try:
            return await batch_check(
                candidates,
                self.lookup,
                concurrency=self.config.concurrency,
                delay_seconds=self.config.chunk_delay_seconds,
                sleep=self._sleep,
            )
        finally:
            aclose = getattr(self.lookup, "aclose", None)
            if aclose is not None:
                await aclose()

    def score_candidate(self, candidate: CandidateRecord, result: AvailabilityResult) -> ScoredRecord:
        """
        Value a candidate given its availability outcome.

        A successful lookup supplies the status and, when it has one, the
        price, and the enhanced score applies. A failed lookup keeps the feed's
        own price and status and falls back to the base score.
        """
        if result.failed:
            price = candidate.price
            status = candidate.status
            score = score_domain(candidate.domain, price, candidate.length, status, self.rules)
        else:
            price = result.price or candidate.price
            status = result.status.value
            score = score_enhanced(
                candidate.domain, price, candidate.length, status, result.available, self.rules
            )
        estimated = estimate_value(
            candidate.domain, score, candidate.length, candidate.extension or candidate.tld, self.rules
        )
        return ScoredRecord(
            candidate=candidate,
            result=result,
            score=score,
            estimated_price=estimated,
            price=price,
            status=status,
        )

    def _upsert(self, scored: ScoredRecord) -> str:
        row = scored.to_row()
        if self.config.upsert_mode == "atomic":
            _, created = self.store.upsert(row)  # type: ignore[attr-defined]
            return "inserted" if created else "updated"
        if self.store.find_by_key(row.domain) is None:
            self.store.insert(row)
            return "inserted"
        self.store.update(row.domain, row.mutable_fields())
        return "updated"

    def _persist(
        self, candidates: Sequence[CandidateRecord], results: Sequence[AvailabilityResult]
    ) -> IngestSummary:
        counts = {"checked": 0, "inserted": 0, "updated": 0, "errors": 0}
        for candidate, result in zip(candidates, results):
            counts["checked"] += 1
            scored = self.score_candidate(candidate, result)
            self.scored.append(scored)
            try:
                action = self._upsert(scored)
            except StoreError as exc:
                counts["errors"] += 1
                log.warning(
                    f"[PERSIST FAILED] {candidate.domain}",
                    extra={"domain": candidate.domain, "error": str(exc)},
                )
            else:
                counts[action] += 1
                log.info(
                    f"[{action.upper()}] {candidate.domain} score={scored.score} "
                    f"estimate={scored.estimated_price:,.0f}",
                    extra={"domain": candidate.domain, "action": action, **counts},
                )
            if self.on_progress is not None:
                self.on_progress(dict(counts))

        return IngestSummary(
            checked=counts["checked"],
            inserted=counts["inserted"],
            updated=counts["updated"],
            total=len(candidates),
            errors=counts["errors"],
        )

    def _release_source(self, path: Path) -> None:
        if self._source_released or not self.config.delete_source:
            return
        self._source_released = True
        try:
            path.unlink(missing_ok=True)
        except OSError:
            log.exception("Could not remove source feed", extra={"source": str(path)})
        else:
            log.info("Source feed removed", extra={"source": str(path)})

    # -- entry points --------------------------------------------------------

    async def run_async(self, source: Path | str) -> IngestSummary:
        """
        Run the pipeline over the CSV at `source` from within an event loop.

        Raises
        ------
        OSError
            If the feed cannot be opened or read.
        StoreUnavailableError
            If the store becomes unreachable.
        """
        path = Path(source)
        self.stage_stats = []
        self.scored = []
        self.sample_stats = None
        self._source_released = False

        log.info(f"[PIPELINE START] {path.name}", extra={"source": str(path)})
        try:
            self._enter(PipelineState.SAMPLING)
            with profile_block("sampling") as stats:
                self.stage_stats.append(stats)
                candidates = await asyncio.to_thread(self._sample, path)
                stats.items = len(candidates)

            self._enter(PipelineState.CHECKING)
            with profile_block("checking") as stats:
                self.stage_stats.append(stats)
                results = await self._check(candidates)
                stats.items = len(results)
                stats.extra["failed_lookups"] = sum(1 for r in results if r.failed)

            self._enter(PipelineState.PERSISTING)
            with profile_block("persisting") as stats:
                self.stage_stats.append(stats)
                summary = await asyncio.to_thread(self._persist, candidates, results)
                stats.items = summary["checked"]
                stats.extra.update(summary)

            self._enter(PipelineState.DONE)
        except Exception:
            self._enter(PipelineState.FAILED)
            log.exception(f"[PIPELINE FAILED] {path.name}", extra={"source": str(path)})
            raise
        finally:
            self._release_source(path)

        log.info(
            f"[PIPELINE COMPLETE] checked={summary['checked']} inserted={summary['inserted']} "
            f"updated={summary['updated']} errors={summary['errors']}",
            extra=dict(summary),
        )
        return summary

    def run(self, source: Path | str) -> IngestSummary:
        """
        Run the pipeline from synchronous code.

        Raises RuntimeError when called while an event loop is running; use
        `run_async` there.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(self.run_async(source))
        raise RuntimeError(
            "IngestionPipeline.run() cannot be used from an async context; await run_async() instead"
        )


def reestimate_missing(store: KeyedRecordStore, rules: ValuationRules = DEFAULT_RULES) -> ReestimateSummary:
    """
    Fill in `estimation_price` for stored rows that have none (null or 0).

    Rows without a score are valued as if they scored 50; rows without a
    length use the length of their domain name.
    """
    rows = store.find_missing_estimates()
    updated = errors = 0
    for row in rows:
        value = estimate_value(
            row.domain,
            row.score or 50,
            row.length or len(row.domain),
            row.extension or row.tld,
            rules,
        )
        try:
            store.update(row.domain, {"estimation_price": value})
        except StoreError as exc:
            errors += 1
            log.warning(f"[REESTIMATE FAILED] {row.domain}", extra={"domain": row.domain, "error": str(exc)})
        else:
            updated += 1
            log.info(f"[REESTIMATED] {row.domain} -> {value:,.0f}", extra={"domain": row.domain})
    return ReestimateSummary(scanned=len(rows), updated=updated, errors=errors)


__all__ = [
    "IngestSummary",
    "IngestionPipeline",
    "PipelineConfig",
    "PipelineState",
    "ReestimateSummary",
    "reestimate_missing",
]
