from __future__ import annotations

import io
import random
from datetime import datetime, timezone

import pytest

from domain_ingest.sampling import (
    SampleStats,
    map_row,
    normalize_accepted_tld,
    parse_timestamp,
    sample_candidates,
    select_uniform,
)
from tests.conftest import FEED_HEADER, FIVE_ROW_FEED

SELECTED = 5


def _feed(domains: list[str]) -> io.StringIO:
    lines = [FEED_HEADER] + [f"{d},100,,,.com,.com,{len(d)},Available" for d in domains]
    return io.StringIO("\n".join(lines) + "\n")


def test_sample_keeps_accepted_tld_in_feed_order() -> None:
    stats = SampleStats()
    candidates = sample_candidates(io.StringIO(FIVE_ROW_FEED), ".com", 200, 20, stats=stats)

    assert [c.domain for c in candidates] == ["homebuilder.com", "smartdata.com", "zest.com"]
    assert stats == SampleStats(rows_read=5, mapped=3, rejected=2, selected=3)


def test_mapped_fields() -> None:
    candidates = sample_candidates(io.StringIO(FIVE_ROW_FEED), ".com", 200, 20)
    home, smart, zest = candidates

    assert home.raw_price == "79"
    assert home.price == 79.0
    assert home.drop_time == datetime(2025, 8, 23, 1, 0)
    assert home.extension == ".com"
    assert home.length == 15
    assert home.status == "Available Soon"
    assert smart.price == pytest.approx(10.6)
    assert zest.price == 1200.0
    assert zest.label == "zest"
    assert zest.suffix == "com"


def test_sampling_stops_at_window() -> None:
    stats = SampleStats()
    domains = [f"name{i}.com" for i in range(50)]
    candidates = sample_candidates(_feed(domains), ".com", 10, 20, stats=stats)

    assert stats.rows_read == 10
    assert [c.domain for c in candidates] == domains[:10]


def test_selection_is_a_subset_without_duplicates() -> None:
    domains = [f"name{i}.com" for i in range(30)]
    candidates = sample_candidates(_feed(domains), ".com", 200, SELECTED, rng=random.Random(7))

    picked = [c.domain for c in candidates]
    assert len(picked) == SELECTED
    assert len(set(picked)) == SELECTED
    assert set(picked) <= set(domains)


def test_seeded_selection_is_reproducible() -> None:
    domains = [f"name{i}.com" for i in range(30)]
    first = sample_candidates(_feed(domains), ".com", 200, SELECTED, rng=random.Random(42))
    second = sample_candidates(_feed(domains), ".com", 200, SELECTED, rng=random.Random(42))
    assert first == second


def test_select_uniform_reaches_every_position() -> None:
    candidates = sample_candidates(_feed([f"name{i}.com" for i in range(6)]), ".com", 200, 20)
    rng = random.Random(1)
    seen = set()
    for _ in range(300):
        seen.update(c.domain for c in select_uniform(candidates, 2, rng))
    assert seen == {c.domain for c in candidates}


def test_duplicate_domains_keep_first_row() -> None:
    feed = io.StringIO(
        f"{FEED_HEADER}\nalpha.com,10,,,.com,.com,9,Available\nALPHA.com,99,,,.com,.com,9,Taken\n"
    )
    candidates = sample_candidates(feed, ".com", 200, 20)
    assert len(candidates) == 1
    assert candidates[0].raw_price == "10"


def test_byte_order_mark_and_header_case_are_tolerated() -> None:
    feed = io.StringIO("\ufeffDomain,Price,Status\nBeta.COM,$5,Available\n")
    (candidate,) = sample_candidates(feed, "com", 200, 20)
    assert candidate.domain == "beta.com"
    assert candidate.price == 5.0
    assert candidate.length == len("beta.com")


@pytest.mark.parametrize(
    "row",
    [
        {"domain": "", "price": "10"},
        {"domain": "example.net"},
        {"domain": ".com"},
        {"price": "10"},
    ],
)
def test_map_row_drops_unusable_rows(row) -> None:
    assert map_row(row, ".com") is None


def test_map_row_tolerates_malformed_fields() -> None:
    candidate = map_row(
        {"domain": "good.com", "price": "call us", "drop_time": "soon", "length": "x", "status": ""}
    )
    assert candidate is not None
    assert candidate.price is None
    assert candidate.drop_time is None
    assert candidate.length == len("good.com")
    assert candidate.status == "Available"


def test_parse_timestamp_formats() -> None:
    assert parse_timestamp("08/23/2025 01:00") == datetime(2025, 8, 23, 1, 0)
    assert parse_timestamp("2025-08-23T01:00:00Z") == datetime(2025, 8, 23, 1, 0, tzinfo=timezone.utc)
    assert parse_timestamp("") is None


def test_normalize_accepted_tld() -> None:
    assert normalize_accepted_tld("COM") == ".com"
    assert normalize_accepted_tld(".io") == ".io"


def test_negative_bounds_are_rejected() -> None:
    with pytest.raises(ValueError):
        sample_candidates(io.StringIO(FIVE_ROW_FEED), ".com", -1, 20)


def _feed_with_oversized_cell() -> io.StringIO:
    lines = FIVE_ROW_FEED.splitlines()
    # one cell past the csv module's default field size limit
    lines.insert(2, "huge.com,10,,,.com,.com,8," + "x" * 200_000)
    return io.StringIO("\n".join(lines) + "\n")


def test_unparseable_row_is_rejected_and_reading_continues() -> None:
    stats = SampleStats()
    candidates = sample_candidates(_feed_with_oversized_cell(), ".com", 200, 20, stats=stats)

    assert [c.domain for c in candidates] == ["homebuilder.com", "smartdata.com", "zest.com"]
    assert stats == SampleStats(rows_read=6, mapped=3, rejected=3, selected=3)


def test_unparseable_row_counts_against_window() -> None:
    stats = SampleStats()
    candidates = sample_candidates(_feed_with_oversized_cell(), ".com", 2, 20, stats=stats)

    assert [c.domain for c in candidates] == ["homebuilder.com"]
    assert stats.rows_read == 2
    assert stats.rejected == 1
