"""
Domain models for the ingestion pipeline.

`CandidateRecord` is what the sampler maps a CSV row into, `AvailabilityResult`
is what the batcher produces per candidate, `ScoredRecord` joins the two with
the valuation, and `DomainRow` is the store's representation of a persisted
domain (table `public.suggested_domains`, see `db/init.sql`).
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from domain_ingest.valuation.pricing import normalize_price


class AvailabilityStatus(str, Enum):
    AVAILABLE = "Available"
    TAKEN = "Taken"
    UNKNOWN = "Unknown"


class CandidateRecord(BaseModel):
    """
    A pre-verification domain entry sampled from a CSV feed.
    """

    domain: str = Field(..., min_length=1, description="Lowercase domain name; unique key.")
    raw_price: Optional[str] = Field(None, description="Price text exactly as found in the feed.")
    drop_time: Optional[datetime] = None
    crawl_time: Optional[datetime] = None
    extension: str = ""
    tld: str = ""
    length: int = Field(..., ge=0)
    status: str = "Available"

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    @property
    def price(self) -> Optional[float]:
        return normalize_price(self.raw_price)

    @property
    def label(self) -> str:
        return self.domain.split(".")[0]

    @property
    def suffix(self) -> str:
        return self.domain.rsplit(".", 1)[-1]


class AvailabilityQuote(BaseModel):
    """
    Answer of a domain lookup service for a single domain.
    """

    available: bool
    price: Optional[float] = None
    currency: str = "USD"
    period: int = 1

    model_config = {"frozen": True}


class AvailabilityResult(BaseModel):
    """
    Outcome of checking one candidate; `error` is set only when the lookup failed.
    """

    domain: str
    available: bool = False
    status: AvailabilityStatus = AvailabilityStatus.UNKNOWN
    price: Optional[float] = None
    currency: str = "USD"
    period: int = 1
    error: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def from_quote(cls, domain: str, quote: AvailabilityQuote) -> "AvailabilityResult":
        return cls(
            domain=domain,
            available=quote.available,
            status=AvailabilityStatus.AVAILABLE if quote.available else AvailabilityStatus.TAKEN,
            price=quote.price,
            currency=quote.currency,
            period=quote.period,
        )

    @classmethod
    def from_failure(cls, domain: str, reason: str) -> "AvailabilityResult":
        return cls(domain=domain, available=False, status=AvailabilityStatus.UNKNOWN, error=reason)


# Columns an update may overwrite; `domain`, `id` and `created_at` are fixed at insert.
MUTABLE_FIELDS = (
    "price",
    "estimation_price",
    "extension",
    "status",
    "score",
    "drop_time",
    "crawl_time",
    "tld",
    "length",
    "available",
    "currency",
)


class DomainRow(BaseModel):
    """
    Representation of a single row in the `suggested_domains` table.
    """

    id: Optional[int] = Field(None, description="Primary key, assigned by the store.")
    domain: str = Field(..., min_length=1)
    price: Optional[float] = None
    estimation_price: Optional[float] = None
    extension: str = ""
    status: str = "Unknown"
    score: Optional[int] = None
    drop_time: Optional[datetime] = None
    crawl_time: Optional[datetime] = None
    tld: str = ""
    length: Optional[int] = None
    available: bool = False
    currency: str = "USD"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    def mutable_fields(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in MUTABLE_FIELDS}


class ScoredRecord(BaseModel):
    """
    A candidate joined with its availability outcome and valuation.

    `price` and `status` are the effective values that get persisted: the
    registrar's when the lookup succeeded, the feed's otherwise.
    """

    candidate: CandidateRecord
    result: AvailabilityResult
    score: int
    estimated_price: float = Field(..., ge=0)
    price: Optional[float] = None
    status: str

    model_config = {"frozen": True}

    @property
    def domain(self) -> str:
        return self.candidate.domain

    def to_row(self) -> DomainRow:
        candidate = self.candidate
        return DomainRow(
            domain=candidate.domain,
            price=self.price,
            estimation_price=self.estimated_price,
            extension=candidate.extension,
            status=self.status,
            score=self.score,
            drop_time=candidate.drop_time,
            crawl_time=candidate.crawl_time,
            tld=candidate.tld,
            length=candidate.length,
            available=self.result.available,
            currency=self.result.currency,
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
