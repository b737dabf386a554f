"""
Desirability scoring for domain names.

`score_domain` rates a domain from its own features plus what the feed says
about it (price, status). `score_enhanced` is used once a live availability
check has answered: it uses a finer price ladder and rewards domains the
registrar reports as available. Both return an integer in the rules' score
bounds (10..100 by default).
"""
from __future__ import annotations

import math
import re
from functools import lru_cache
from typing import Optional, Sequence, Tuple

from domain_ingest.valuation.rules import DEFAULT_RULES, ValuationRules


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, bounds: Tuple[float, float]) -> float:
    low, high = bounds
    return max(low, min(high, value))


def _split(domain: str) -> Tuple[str, str]:
    """Return (label, tld): the first and last DNS labels."""
    domain = domain.strip().lower()
    return domain.split(".")[0], domain.rsplit(".", 1)[-1]


@lru_cache(maxsize=64)
def _compiled(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def _tiered(value: float, tiers: Sequence[Tuple[float, float]], default: float) -> float:
    for upper, points in tiers:
        if value <= upper:
            return points
    return default


def _price_points(price: Optional[float], ladder: Sequence[Tuple[float, float]]) -> float:
    if not price:
        return 0
    for threshold, points in ladder:
        if price > threshold:
            return points
    return 0


def length_points(length: int, rules: ValuationRules = DEFAULT_RULES) -> float:
    return _tiered(length, rules.length_points, rules.length_points_default)


def tld_points(tld: str, rules: ValuationRules = DEFAULT_RULES) -> float:
    return rules.tld_scores.get(tld, rules.tld_score_default) / rules.tld_score_divisor


def keyword_points(label: str, rules: ValuationRules = DEFAULT_RULES) -> float:
    matches = {keyword for keyword in rules.premium_keywords if keyword in label}
    return len(matches) * rules.keyword_points


def brandability(label: str, rules: ValuationRules = DEFAULT_RULES) -> float:
    """Memorability adjustment, bounded by `rules.brand_bounds`."""
    total = sum(
        brand.points for brand in rules.brand_patterns if _compiled(brand.pattern).search(label)
    )
    return _clamp(total, rules.brand_bounds)


def market_demand(label: str, tld: str, rules: ValuationRules = DEFAULT_RULES) -> float:
    """Segment and trend bonus, capped at `rules.market_cap`."""
    total = 0.0
    for segment in rules.market_segments:
        if tld in segment.tlds and any(keyword in label for keyword in segment.keywords):
            total += segment.points
    if any(keyword in label for keyword in rules.trending_keywords):
        total += rules.trending_points
    return min(rules.market_cap, total)


def status_points(status: Optional[str], rules: ValuationRules = DEFAULT_RULES) -> float:
    if not status:
        return 0
    lowered = status.lower()
    for needle, points in rules.status_points:
        if needle in lowered:
            return points
    return 0


def _intrinsic_points(domain: str, length: int, rules: ValuationRules) -> float:
    label, tld = _split(domain)
    return (
        length_points(length, rules)
        + tld_points(tld, rules)
        + keyword_points(label, rules)
        + brandability(label, rules)
        + market_demand(label, tld, rules)
    )


def _finalize(total: float, rules: ValuationRules) -> int:
    return round_half_up(_clamp(total, rules.score_bounds))


def score_domain(
    domain: str,
    price: Optional[float],
    length: int,
    status: Optional[str],
    rules: ValuationRules = DEFAULT_RULES,
) -> int:
    """
    Score a domain from its lexical features and the feed's price/status.

    Parameters
    ----------
    domain : str
        Full domain name, e.g. "cloudhub.io".
    price : float | None
        Known price; ignored when None or zero.
    length : int
        Character count used for the length tier (the feed's value when given).
    status : str | None
        Feed status text such as "Available Soon" or "Premium".
    """
    total = _intrinsic_points(domain, length, rules)
    total += _price_points(price, rules.price_points)
    total += status_points(status, rules)
    return _finalize(total, rules)


def score_enhanced(
    domain: str,
    price: Optional[float],
    length: int,
    status: Optional[str],
    available: bool,
    rules: ValuationRules = DEFAULT_RULES,
) -> int:
    """
    Score a domain after a live availability check.

    Same features as `score_domain`, with the finer price ladder and an
    availability bonus (plus an extra bonus keyed on the exact status).
    """
    total = _intrinsic_points(domain, length, rules)
    total += _price_points(price, rules.enhanced_price_points)
    if available:
        total += rules.available_points
        total += rules.availability_status_points.get(status or "", 0)
    total += status_points(status, rules)
    return _finalize(total, rules)


__all__ = [
    "brandability",
    "keyword_points",
    "length_points",
    "market_demand",
    "round_half_up",
    "score_domain",
    "score_enhanced",
    "status_points",
    "tld_points",
]
