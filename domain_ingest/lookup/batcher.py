"""
Throttled, failure-isolating availability checks.

Candidates are checked in fixed-size chunks: lookups inside a chunk run
concurrently and all of them settle before the next chunk starts, with a fixed
pause between chunks to respect the registrar's rate policy. One failed lookup
becomes an `Unknown` result for that domain and never affects its siblings.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Sequence

from domain_ingest.domain.models import AvailabilityResult, CandidateRecord
from domain_ingest.lookup.abstract import DomainLookupService
from domain_ingest.utils.logging import get_logger

log = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


def chunked(items: Sequence[CandidateRecord], size: int) -> List[Sequence[CandidateRecord]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


async def _check_one(lookup: DomainLookupService, domain: str) -> AvailabilityResult:
    try:
        quote = await lookup.check_availability(domain)
    except Exception as exc:  # noqa: BLE001 - any lookup error is isolated to its domain
        log.warning(
            f"[LOOKUP FAILED] {domain}",
            extra={"domain": domain, "lookup": lookup.name, "error": str(exc)},
        )
        return AvailabilityResult.from_failure(domain, str(exc) or type(exc).__name__)
    return AvailabilityResult.from_quote(domain, quote)


async def batch_check(
    candidates: Sequence[CandidateRecord],
    lookup: DomainLookupService,
    concurrency: int = 3,
    delay_seconds: float = 1.0,
    sleep: SleepFn = asyncio.sleep,
) -> List[AvailabilityResult]:
    """
    Check every candidate's availability, `concurrency` lookups at a time.

    Parameters
    ----------
    candidates : sequence of CandidateRecord
        Domains to check; the result list has the same length and order.
    lookup : DomainLookupService
        Service answering individual lookups.
    concurrency : int
        Chunk size, i.e. the maximum number of lookups in flight.
    delay_seconds : float
        Pause between chunks; skipped after the last chunk.
    sleep : callable
        Awaitable sleep, injectable for tests.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    chunks = chunked(candidates, concurrency)
    results: List[AvailabilityResult] = []
    for index, chunk in enumerate(chunks, start=1):
        chunk_results = await asyncio.gather(
            *(_check_one(lookup, candidate.domain) for candidate in chunk)
        )
        results.extend(chunk_results)
        log.debug(
            f"[CHUNK {index}/{len(chunks)}] checked {len(chunk)} domains",
            extra={
                "chunk": index,
                "total_chunks": len(chunks),
                "failed": sum(1 for r in chunk_results if r.failed),
            },
        )
        if index < len(chunks) and delay_seconds > 0:
            await sleep(delay_seconds)

    return results


__all__ = ["batch_check", "chunked"]
