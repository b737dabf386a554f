"""
Monetary value estimate for a scored domain.

base(tld) x score / 50 x length multiplier, rounded to a granularity that
grows with the magnitude so advertised prices come out as clean numbers.
"""
from __future__ import annotations

from domain_ingest.valuation.rules import DEFAULT_RULES, ValuationRules
from domain_ingest.valuation.scorer import round_half_up


def normalize_tld(tld: str, domain: str = "") -> str:
    """".COM" -> "com"; an empty tld falls back to the domain's last label."""
    cleaned = (tld or "").strip().lower().lstrip(".")
    if cleaned:
        return cleaned.rsplit(".", 1)[-1]
    return domain.strip().lower().rsplit(".", 1)[-1]


def round_to_band(value: float, rules: ValuationRules = DEFAULT_RULES) -> float:
    granularity = rules.rounding_default
    for upper, step in rules.rounding_bands:
        if value < upper:
            granularity = step
            break
    return float(round_half_up(value / granularity) * granularity)


def estimate_value(
    domain: str,
    score: float,
    length: int,
    tld: str = "",
    rules: ValuationRules = DEFAULT_RULES,
) -> float:
    key = normalize_tld(tld, domain)
    base = rules.tld_base_values.get(key, rules.tld_base_default)
    score_multiplier = score / rules.score_divisor
    length_multiplier = rules.length_multiplier_default
    for upper, multiplier in rules.length_multipliers:
        if length <= upper:
            length_multiplier = multiplier
            break
    raw = base * score_multiplier * length_multiplier
    return max(0.0, round_to_band(raw, rules))


__all__ = ["estimate_value", "normalize_tld", "round_to_band"]
