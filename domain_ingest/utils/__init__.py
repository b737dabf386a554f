"""
Utilities package for the domain ingestion pipeline.

Exports shared helpers for logging, profiling, and other cross-cutting concerns.
Keep this package lightweight and free of domain-specific logic.
"""

from domain_ingest.utils.logging import configure_logging, get_logger
from domain_ingest.utils.profiler import ProfileStats, profile_block

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
