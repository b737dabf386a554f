"""
Domain Ingest - sampling, availability checking and valuation of domain feeds.

This package turns CSV feeds of dropping/expiring domains into valued records:

- Sampling of a bounded window of feed rows, filtered by TLD
- Availability lookups in rate-limited concurrent chunks
- Rule-based scoring and value estimation
- Upserts into a keyed store (PostgreSQL or in-memory)
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from domain_ingest.config import Settings, get_settings
from domain_ingest.pipeline import IngestionPipeline, PipelineConfig, reestimate_missing
from domain_ingest.utils.logging import configure_logging, get_logger
from domain_ingest.utils.profiler import ProfileStats, profile_block
from domain_ingest.valuation import estimate_value, normalize_price, score_domain, score_enhanced

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Pipeline
    "IngestionPipeline",
    "PipelineConfig",
    "reestimate_missing",
    # Valuation
    "estimate_value",
    "normalize_price",
    "score_domain",
    "score_enhanced",
    # Logging
    "configure_logging",
    "get_logger",
    # Profiling
    "ProfileStats",
    "profile_block",
]
