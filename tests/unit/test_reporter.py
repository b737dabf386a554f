from __future__ import annotations

from rich.console import Console

from domain_ingest.domain.models import AvailabilityResult, CandidateRecord, ScoredRecord
from domain_ingest.reporter import build_scored_table, build_summary_table, print_run_report
from domain_ingest.utils.profiler import ProfileStats

SUMMARY = {"checked": 2, "inserted": 1, "updated": 1, "total": 2, "errors": 0}


def _scored(domain: str, score: int, failed: bool = False) -> ScoredRecord:
    result = (
        AvailabilityResult.from_failure(domain, "HTTP 503")
        if failed
        else AvailabilityResult(domain=domain, available=True)
    )
    return ScoredRecord(
        candidate=CandidateRecord(domain=domain, length=len(domain)),
        result=result,
        score=score,
        estimated_price=1500,
        price=None,
        status="Available",
    )


def test_summary_table_rows() -> None:
    stage = ProfileStats(label="checking", duration_seconds=1.25, peak_rss_bytes=50 * 1024 * 1024)
    table = build_summary_table(SUMMARY, [stage])
    assert table.row_count == 6


def test_scored_table_orders_by_score() -> None:
    table = build_scored_table([_scored("low.com", 20), _scored("high.com", 90, failed=True)])
    assert table.row_count == 2
    assert list(table.columns[0].cells) == ["high.com", "low.com"]
    assert "lookup failed" in list(table.columns[1].cells)[0]


def test_print_run_report_renders_both_tables() -> None:
    console = Console(record=True, width=120)
    print_run_report(SUMMARY, scored=[_scored("zest.com", 70)], console=console)
    text = console.export_text()
    assert "Valued Domains" in text
    assert "zest.com" in text
    assert "Inserted" in text
