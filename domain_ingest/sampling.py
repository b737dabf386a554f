"""
CSV sampling and row mapping for domain feeds.

Feeds can run to many thousands of rows while a run only verifies a handful
of domains against the registrar, so the sampler reads a bounded window from
the front of the feed, maps the rows it can use into `CandidateRecord`s and
draws a uniform random subset of them.

Expected columns (header-driven, order does not matter):

    domain,price,drop_time,crawl_time,extension,tld,length,status
    homebuilder.com,79,08/23/2025 01:00,08/22/2025 22:00,.com,.com,11,Available Soon
"""
from __future__ import annotations

import csv
import random
from dataclasses import dataclass
from datetime import datetime
from typing import IO, Iterable, List, Mapping, Optional

from domain_ingest.domain.models import CandidateRecord
from domain_ingest.utils.logging import get_logger

log = get_logger(__name__)

_DATE_FORMATS = (
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M",
)


@dataclass
class SampleStats:
    rows_read: int = 0
    mapped: int = 0
    rejected: int = 0
    selected: int = 0


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def normalize_accepted_tld(accepted_tld: str) -> str:
    """"com" and ".COM" both become ".com"."""
    cleaned = accepted_tld.strip().lower()
    return cleaned if cleaned.startswith(".") else f".{cleaned}"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    text = _clean(value)
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _parse_length(value: Optional[str], domain: str) -> int:
    try:
        length = int(_clean(value))
    except ValueError:
        return len(domain)
    return length if length > 0 else len(domain)


def _normalize_headers(row: Mapping[Optional[str], Optional[str]]) -> dict[str, str]:
    # DictReader files extra cells under the None key
    return {
        key.strip().lstrip("\ufeff").lower(): value
        for key, value in row.items()
        if key is not None and isinstance(value, str)
    }


def map_row(row: Mapping[Optional[str], Optional[str]], accepted_tld: str = ".com") -> Optional[CandidateRecord]:
    """
    Map one CSV row to a candidate, or None when the row is unusable.

    Rows without a domain, or whose domain does not end with `accepted_tld`,
    are dropped. Unparsable prices and timestamps become None rather than
    rejecting the row.
    """
    fields = _normalize_headers(row)
    domain = _clean(fields.get("domain")).lower()
    suffix = normalize_accepted_tld(accepted_tld)
    if not domain or not domain.endswith(suffix) or len(domain) == len(suffix):
        return None

    extension = _clean(fields.get("extension"))
    return CandidateRecord(
        domain=domain,
        raw_price=_clean(fields.get("price")) or None,
        drop_time=parse_timestamp(fields.get("drop_time")),
        crawl_time=parse_timestamp(fields.get("crawl_time")),
        extension=extension,
        tld=_clean(fields.get("tld")) or extension,
        length=_parse_length(fields.get("length"), domain),
        status=_clean(fields.get("status")) or "Available",
    )


def select_uniform(
    candidates: List[CandidateRecord], max_selected: int, rng: Optional[random.Random] = None
) -> List[CandidateRecord]:
    """
    Pick `max_selected` candidates uniformly at random (Fisher-Yates shuffle, then prefix).

    When there are not more candidates than requested, all are returned in order.
    """
    if len(candidates) <= max_selected:
        return list(candidates)
    shuffled = list(candidates)
    (rng or random.Random()).shuffle(shuffled)
    return shuffled[:max_selected]


def sample_candidates(
    stream: IO[str] | Iterable[str],
    accepted_tld: str = ".com",
    sample_window: int = 200,
    max_selected: int = 20,
    rng: Optional[random.Random] = None,
    stats: Optional[SampleStats] = None,
) -> List[CandidateRecord]:
    """
    Read at most `sample_window` rows from `stream` and select up to `max_selected` candidates.

    Parameters
    ----------
    stream : file-like or iterable of lines
        CSV text with a header row. Only the first `sample_window` data rows are consumed.
    accepted_tld : str
        Domains must end with this suffix (".com" by default) to be kept.
    sample_window : int
        Number of data rows read before sampling stops.
    max_selected : int
        Upper bound on the number of returned candidates.
    rng : random.Random, optional
        Source of randomness for the selection; pass a seeded instance for reproducible runs.
    stats : SampleStats, optional
        Populated with row and candidate counts.
    """
    if sample_window < 0 or max_selected < 0:
        raise ValueError("sample_window and max_selected must be non-negative")
    stats = stats if stats is not None else SampleStats()

    mapped: List[CandidateRecord] = []
    seen: set[str] = set()
    reader = csv.DictReader(stream)
    while stats.rows_read < sample_window:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as exc:
            # the reader drops the offending line and resumes on the next one
            stats.rows_read += 1
            stats.rejected += 1
            log.warning(
                "Skipping unparseable feed row %d: %s",
                reader.line_num,
                exc,
                extra={"line": reader.line_num, "error": str(exc)},
            )
            continue
        stats.rows_read += 1
        candidate = map_row(row, accepted_tld)
        if candidate is None:
            stats.rejected += 1
            continue
        if candidate.domain in seen:
            continue
        seen.add(candidate.domain)
        mapped.append(candidate)

    stats.mapped = len(mapped)
    selected = select_uniform(mapped, max_selected, rng)
    stats.selected = len(selected)

    log.info(
        "Sampled %d candidates from %d rows",
        stats.selected,
        stats.rows_read,
        extra={
            "rows_read": stats.rows_read,
            "mapped": stats.mapped,
            "rejected": stats.rejected,
            "selected": stats.selected,
            "sample_window": sample_window,
        },
    )
    return selected


__all__ = [
    "SampleStats",
    "map_row",
    "normalize_accepted_tld",
    "parse_timestamp",
    "sample_candidates",
    "select_uniform",
]
