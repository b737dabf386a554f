from __future__ import annotations

import json
import random
import sys
from pathlib import Path
from typing import Optional

import typer

from domain_ingest.config import get_settings
from domain_ingest.infrastructure.db_factory import get_sync_connection
from domain_ingest.lookup import available_backends, build_lookup_service
from domain_ingest.pipeline import IngestionPipeline, PipelineConfig, reestimate_missing
from domain_ingest.reporter import print_run_report
from domain_ingest.store import build_store
from domain_ingest.utils.logging import configure_logging
from domain_ingest.valuation import estimate_value, load_rules, normalize_price, score_domain

app = typer.Typer(help="Domain feed ingestion and valuation CLI.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} "
        f"store={settings.store_backend} upsert={settings.upsert_mode} | "
        f"lookup={settings.lookup_backend} credentials={'yes' if settings.has_godaddy_credentials else 'no'} | "
        f"tld={settings.ingest_accepted_tld} window={settings.ingest_sample_window} "
        f"select={settings.ingest_max_selected} concurrency={settings.lookup_concurrency} "
        f"delay={settings.lookup_chunk_delay_seconds}s"
    )


@app.command("init-db")
def init_db(
    schema: Path = typer.Option(
        Path("db/init.sql"), "--schema", exists=True, dir_okay=False, help="DDL file to apply."
    ),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
) -> None:
    """
    Create the suggested_domains table (idempotent).
    """
    _setup_logging()
    with get_sync_connection(dsn) as conn:
        conn.execute(schema.read_text(encoding="utf-8"))
    typer.echo(f"Applied {schema}")


@app.command()
def ingest(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV feed to ingest."),
    keep_source: bool = typer.Option(
        False, "--keep-source", help="Do not delete the feed after the run."
    ),
    max_selected: Optional[int] = typer.Option(
        None, "--max-selected", "-n", help="Override number of domains to check."
    ),
    sample_window: Optional[int] = typer.Option(
        None, "--sample-window", "-w", help="Override number of feed rows to read."
    ),
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-c", help="Override lookups per chunk."
    ),
    backend: Optional[str] = typer.Option(
        None,
        "--lookup",
        "-l",
        help=f"Lookup backend ({', '.join(available_backends())}).",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Persist into an in-memory store instead of the database."
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for candidate selection."),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON."),
) -> None:
    """
    Sample a CSV feed, check availability, value the domains and upsert them.
    """
    _setup_logging()
    settings = get_settings()
    defaults = PipelineConfig.from_settings(settings)
    config = PipelineConfig(
        accepted_tld=defaults.accepted_tld,
        sample_window=sample_window if sample_window is not None else defaults.sample_window,
        max_selected=max_selected if max_selected is not None else defaults.max_selected,
        concurrency=concurrency if concurrency is not None else defaults.concurrency,
        chunk_delay_seconds=defaults.chunk_delay_seconds,
        delete_source=defaults.delete_source and not keep_source,
        upsert_mode=defaults.upsert_mode,
    )
    pipeline = IngestionPipeline(
        store=build_store(settings, "memory" if dry_run else None),
        lookup=build_lookup_service(settings, backend),
        config=config,
        rules=load_rules(settings.valuation_rules_path),
        rng=random.Random(seed) if seed is not None else None,
    )
    summary = pipeline.run(source)

    if as_json:
        payload = {**summary, "stages": [stage.as_dict() for stage in pipeline.stage_stats]}
        typer.echo(json.dumps(payload, indent=2))
    else:
        print_run_report(summary, pipeline.stage_stats, pipeline.scored)


@app.command()
def value(
    domain: str = typer.Argument(..., help="Domain to value, e.g. cloudhub.io"),
    price: Optional[str] = typer.Option(None, "--price", "-p", help="Known price text."),
    status: str = typer.Option("Available", "--status", "-s", help="Status text."),
) -> None:
    """
    Print the score and value estimate of a single domain.
    """
    rules = load_rules(get_settings().valuation_rules_path)
    name = domain.strip().lower()
    length = len(name)
    score = score_domain(name, normalize_price(price), length, status, rules)
    estimate = estimate_value(name, score, length, "", rules)
    typer.echo(f"{name}: score={score}/100 estimate={estimate:,.0f} (rules {rules.version})")


@app.command()
def reestimate() -> None:
    """
    Fill in missing value estimates of stored domains.
    """
    _setup_logging()
    settings = get_settings()
    summary = reestimate_missing(build_store(settings), load_rules(settings.valuation_rules_path))
    typer.echo(json.dumps(summary, indent=2))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
