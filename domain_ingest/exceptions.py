"""
Exception hierarchy for the domain ingestion pipeline.

Only `StoreUnavailableError` and I/O errors raised while reading the source
feed abort a run. Lookup and per-record store failures are recovered by the
batcher and the pipeline and surface only in the final counts.
"""

from __future__ import annotations


class DomainIngestError(Exception):
    """Base class for all package errors."""


class ConfigurationError(DomainIngestError):
    """Raised when settings cannot produce a usable collaborator."""


class LookupFailure(DomainIngestError):
    """A single availability lookup failed (HTTP error, timeout, bad payload)."""

    def __init__(self, domain: str, reason: str) -> None:
        super().__init__(f"Availability lookup failed for {domain}: {reason}")
        self.domain = domain
        self.reason = reason


class StoreError(DomainIngestError):
    """A single store operation failed; the run continues with the next record."""


class StoreUnavailableError(DomainIngestError):
    """The store cannot be reached at all; fatal for the run."""


__all__ = [
    "DomainIngestError",
    "ConfigurationError",
    "LookupFailure",
    "StoreError",
    "StoreUnavailableError",
]
