"""
Valuation package: price normalization, scoring and value estimation.

Everything here is pure; the tables the scorer and estimator use are data in
`domain_ingest.valuation.rules`.
"""

from domain_ingest.valuation.estimator import estimate_value
from domain_ingest.valuation.pricing import normalize_price
from domain_ingest.valuation.rules import DEFAULT_RULES, ValuationRules, load_rules
from domain_ingest.valuation.scorer import score_domain, score_enhanced

__all__ = [
    "DEFAULT_RULES",
    "ValuationRules",
    "estimate_value",
    "load_rules",
    "normalize_price",
    "score_domain",
    "score_enhanced",
]
