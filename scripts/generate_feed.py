"""
Synthetic domain feed generator.

Writes a CSV in the layout of the dropping-domain feeds the pipeline ingests,
with a deterministic seed so test runs and demos see the same rows.

Usage:
    python scripts/generate_feed.py --rows 500 --output feeds/sample.csv
    domain-ingest ingest feeds/sample.csv --lookup mock --dry-run
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from datetime import datetime, timedelta
from pathlib import Path

import typer

app = typer.Typer(help="Generate a synthetic dropping-domain CSV feed.")

FEED_COLUMNS = ["domain", "price", "drop_time", "crawl_time", "extension", "tld", "length", "status"]

_WORDS = [
    "cloud", "data", "shop", "smart", "green", "tech", "home", "pay", "health",
    "crypto", "market", "web", "ai", "solar", "pet", "travel", "food", "fit",
    "builder", "hub", "labs", "zone", "direct", "wise", "net", "flow",
]
_EXTENSIONS = [".com", ".com", ".com", ".com", ".net", ".org", ".io", ".ai", ".xyz"]
_STATUSES = ["Available", "Available Soon", "Pending Delete", "Taken"]
_PRICE_STYLES = ["{:.0f}", "${:,.0f}", "{:,.2f}", "€{:.0f}", ""]


def _price_text(rng: random.Random) -> str:
    style = rng.choice(_PRICE_STYLES)
    if not style:
        return ""
    amount = rng.choice([rng.uniform(5, 99), rng.uniform(100, 2_500), rng.uniform(2_500, 25_000)])
    return style.format(amount)


def _generate_feed_csv(csv_path: Path, rows: int, seed: int) -> int:
    """Write `rows` feed rows to `csv_path`; returns the number of rows written."""
    rng = random.Random(seed)
    base = datetime(2025, 8, 23, 0, 0)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(FEED_COLUMNS)
        for i in range(rows):
            label = "".join(rng.sample(_WORDS, rng.choice([1, 2, 2, 3])))
            if rng.random() < 0.15:
                label = f"{label}{rng.randint(1, 99)}"
            extension = rng.choice(_EXTENSIONS)
            domain = f"{label}{extension}"
            drop_time = base + timedelta(minutes=rng.randint(0, 7 * 24 * 60))
            crawl_time = drop_time - timedelta(hours=rng.randint(1, 48))
            writer.writerow(
                [
                    domain,
                    _price_text(rng),
                    drop_time.strftime("%m/%d/%Y %H:%M"),
                    crawl_time.strftime("%m/%d/%Y %H:%M"),
                    extension,
                    extension,
                    len(domain),
                    rng.choice(_STATUSES),
                ]
            )
    return rows


@app.command()
def main(
    rows: int = typer.Option(
        500,
        "--rows",
        "-r",
        help="Number of feed rows to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
) -> None:
    """
    Generate a synthetic domain feed CSV.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="domain_feed_"))
        csv_path = tmpdir / "feed.csv"

    typer.echo(f"Generating {rows:,} feed rows -> {csv_path} (seed={seed})")
    _generate_feed_csv(csv_path, rows=rows, seed=seed)
    typer.echo(f"Feed generation completed in {time.perf_counter() - start:.2f}s")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
