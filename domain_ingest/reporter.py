from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from domain_ingest.domain.models import ScoredRecord
from domain_ingest.utils.profiler import ProfileStats


def _mb(value: Optional[int]) -> str:
    if not value:
        return "N/A"
    return f"{value / (1024 * 1024):.2f}"


def _rate(value: Optional[float]) -> str:
    return f"{value:,.1f}" if value else "-"


def build_summary_table(summary: Mapping[str, int], stages: Sequence[ProfileStats] = ()) -> Table:
    """
    Build a rich table with the run counts followed by one line per stage.
    """
    table = Table(title="Domain Ingestion Run", box=box.ROUNDED)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right", style="magenta")

    for key in ("checked", "inserted", "updated", "errors", "total"):
        if key in summary:
            table.add_row(key.capitalize(), f"{summary[key]:,}")

    for stage in stages:
        table.add_row(
            f"[dim]{stage.label} (s / items/s / peak MB)[/dim]",
            f"{stage.duration_seconds:.2f} / {_rate(stage.items_per_second)} / {_mb(stage.peak_rss_bytes)}",
        )
    return table


def build_scored_table(scored: Iterable[ScoredRecord]) -> Table:
    """
    Build a rich table of valued domains, best score first.
    """
    table = Table(title="Valued Domains", box=box.ROUNDED, caption="Sorted by score (descending)")
    table.add_column("Domain", style="cyan", no_wrap=True)
    table.add_column("Status", style="blue")
    table.add_column("Score", justify="right", style="bold green")
    table.add_column("Price", justify="right", style="yellow")
    table.add_column("Estimate", justify="right", style="green")

    for record in sorted(scored, key=lambda r: r.score, reverse=True):
        price = f"{record.price:,.2f}" if record.price is not None else "-"
        status = record.status if not record.result.failed else f"{record.status} (lookup failed)"
        table.add_row(
            record.domain, status, str(record.score), price, f"{record.estimated_price:,.0f}"
        )
    return table


def print_run_report(
    summary: Mapping[str, int],
    stages: Sequence[ProfileStats] = (),
    scored: Iterable[ScoredRecord] = (),
    console: Optional[Console] = None,
) -> None:
    """
    Render the summary of a pipeline run (and the valued domains, if given).
    """
    console = console or Console()
    scored = list(scored)
    if scored:
        console.print(build_scored_table(scored))
    console.print(build_summary_table(summary, stages))


__all__ = ["build_scored_table", "build_summary_table", "print_run_report"]
