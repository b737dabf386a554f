"""
Valuation rules: every table and constant the scorer and estimator use.

The heuristics are business rules that change over time, so they live here as
versioned data rather than in the scoring code. A JSON file with the same
shape as `ValuationRules` replaces the defaults (see `load_rules`); fields it
omits keep their default values.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field

from domain_ingest.utils.logging import get_logger

log = get_logger(__name__)

RULES_VERSION = "2025.08"

_TECH_KEYWORDS = ("tech", "digital", "web", "app", "smart", "cloud", "data", "ai", "cyber")


class MarketSegment(BaseModel):
    """Bonus for labels carrying a segment keyword under one of the segment's TLDs."""

    tlds: Tuple[str, ...]
    keywords: Tuple[str, ...]
    points: float

    model_config = {"frozen": True}


class BrandPattern(BaseModel):
    """Regex tested (case-insensitively) against the label; adds `points` on match."""

    pattern: str
    points: float

    model_config = {"frozen": True}


class ValuationRules(BaseModel):
    version: str = RULES_VERSION

    # Scorer
    score_bounds: Tuple[float, float] = (10, 100)
    length_points: Tuple[Tuple[int, float], ...] = ((3, 40), (5, 30), (7, 20), (10, 10))
    length_points_default: float = 5
    tld_scores: Dict[str, float] = Field(
        default_factory=lambda: {
            "com": 100, "net": 80, "org": 75, "io": 85, "co": 70,
            "tech": 65, "app": 70, "dev": 60, "ai": 90, "cloud": 75,
        }
    )
    tld_score_default: float = 50
    tld_score_divisor: float = 10
    premium_keywords: Tuple[str, ...] = (
        "tech", "digital", "web", "app", "smart", "cloud", "data", "ai", "cyber",
        "future", "global", "world", "hub", "pro", "lab", "studio", "agency",
        "solutions", "systems", "works", "group",
    )
    keyword_points: float = 15
    brand_patterns: Tuple[BrandPattern, ...] = (
        BrandPattern(pattern=r"^[aeiou]{2,}", points=10),
        BrandPattern(pattern=r"[aeiou]{3,}", points=5),
        BrandPattern(pattern=r"^[bcdfghjklmnpqrstvwxyz]{2,}", points=8),
        BrandPattern(pattern=r"[bcdfghjklmnpqrstvwxyz]{4,}", points=-5),
        BrandPattern(pattern=r"(.)\1{2,}", points=-10),
        BrandPattern(pattern=r"\d", points=-5),
        BrandPattern(pattern=r"-", points=-8),
    )
    brand_bounds: Tuple[float, float] = (-20, 20)
    market_segments: Tuple[MarketSegment, ...] = (
        MarketSegment(tlds=("tech", "ai", "dev", "app"), keywords=_TECH_KEYWORDS, points=20),
        MarketSegment(
            tlds=("io", "co"),
            keywords=("startup", "hub", "pro", "lab", "studio", "agency"),
            points=15,
        ),
    )
    trending_keywords: Tuple[str, ...] = ("ai", "ml", "blockchain", "crypto", "nft", "metaverse", "web3")
    trending_points: float = 25
    market_cap: float = 30
    # (exclusive lower bound, points), checked top-down, first match wins
    price_points: Tuple[Tuple[float, float], ...] = ((1000, 20), (500, 15), (100, 10))
    enhanced_price_points: Tuple[Tuple[float, float], ...] = (
        (1000, 25), (500, 20), (100, 15), (50, 10),
    )
    available_points: float = 15
    availability_status_points: Dict[str, float] = Field(
        default_factory=lambda: {"Available": 10, "Available Soon": 5}
    )
    # (lowercase substring, points), first match wins
    status_points: Tuple[Tuple[str, float], ...] = (("premium", 20), ("available", 15), ("soon", 10))

    # Estimator
    tld_base_values: Dict[str, float] = Field(
        default_factory=lambda: {
            "com": 1000, "net": 800, "org": 750, "io": 1200, "co": 900,
            "tech": 600, "app": 700, "dev": 500, "ai": 1500, "cloud": 800,
        }
    )
    tld_base_default: float = 500
    score_divisor: float = 50
    length_multipliers: Tuple[Tuple[int, float], ...] = ((3, 3.0), (5, 2.0), (7, 1.5), (10, 1.2))
    length_multiplier_default: float = 1.0
    # (exclusive upper bound, granularity); values above the last bound use the default
    rounding_bands: Tuple[Tuple[float, float], ...] = ((100, 10), (1000, 50), (10000, 100))
    rounding_default: float = 1000

    model_config = {"frozen": True}


DEFAULT_RULES = ValuationRules()


def load_rules(path: Optional[Path | str] = None) -> ValuationRules:
    """
    Load valuation rules from a JSON file, or return the built-in defaults.

    Raises
    ------
    OSError
        If the file cannot be read.
    pydantic.ValidationError
        If the file does not describe a valid rule set.
    """
    if path is None:
        return DEFAULT_RULES
    rules = ValuationRules.model_validate_json(Path(path).read_text(encoding="utf-8"))
    log.info("Loaded valuation rules", extra={"path": str(path), "rules_version": rules.version})
    return rules


__all__ = [
    "BrandPattern",
    "DEFAULT_RULES",
    "MarketSegment",
    "RULES_VERSION",
    "ValuationRules",
    "load_rules",
]
