"""
Domain package for the ingestion pipeline.

Exports the core data models shared by the sampler, the lookup batcher, the
stores and the pipeline. Keep this package focused on data definitions.
"""

from domain_ingest.domain.models import (
    MUTABLE_FIELDS,
    AvailabilityQuote,
    AvailabilityResult,
    AvailabilityStatus,
    CandidateRecord,
    DomainRow,
    ScoredRecord,
)

__all__ = [
    "AvailabilityQuote",
    "AvailabilityResult",
    "AvailabilityStatus",
    "CandidateRecord",
    "DomainRow",
    "MUTABLE_FIELDS",
    "ScoredRecord",
]
