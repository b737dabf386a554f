"""
Stage profiling utilities for the ingestion pipeline.

The pipeline wraps each stage (sampling, checking, persisting) in
`profile_block` so a run can report where its time went. Measures wall-clock
time with perf_counter and peak RSS with a background psutil sampler.

Usage:
    from domain_ingest.utils.profiler import profile_block

    with profile_block("sampling") as stats:
        candidates = sample_candidates(...)
    stats.items = len(candidates)

    print(stats.duration_seconds, stats.items_per_second, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for profiling measurements of one pipeline stage.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    items: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def items_per_second(self) -> Optional[float]:
        if self.items <= 0 or self.duration_seconds <= 0:
            return None
        return self.items / self.duration_seconds

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["items_per_second"] = self.items_per_second
        return payload


@contextlib.contextmanager
def profile_block(label: str, sample_interval_ms: int = 50) -> Generator[ProfileStats, None, None]:
    """
    Context manager to profile a block of code.

    Parameters
    ----------
    label : str
        Stage name recorded on the stats object.
    sample_interval_ms : int
        Interval in milliseconds for RSS sampling.

    Notes
    -----
    Stats are finalized even when the block raises, so a failed stage still
    reports how long it ran before failing.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    peak_rss = process.memory_info().rss
    stop_sampling = threading.Event()

    def _sample_memory() -> None:
        nonlocal peak_rss
        while not stop_sampling.is_set():
            try:
                peak_rss = max(peak_rss, process.memory_info().rss)
            except psutil.Error:
                return
            stop_sampling.wait(timeout=sample_interval_ms / 1000.0)

    sampler = threading.Thread(target=_sample_memory, daemon=True)
    sampler.start()

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts

        stop_sampling.set()
        sampler.join(timeout=1.0)
        stats.peak_rss_bytes = peak_rss if peak_rss > 0 else None


__all__ = ["ProfileStats", "profile_block"]
