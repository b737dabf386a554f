"""
Normalization of human-entered price strings from domain feeds.

Feeds mix US ("1,234.56") and European ("1 234,56") conventions, so a comma is
ambiguous. A comma followed by exactly one or two digits and then the end of
the text (or another non-digit, non-space character) is a decimal separator;
every other comma groups thousands. Digits followed by a space mean the comma
grouped a space-separated amount, which is why "10,6 900" reads as 106900.
"""
from __future__ import annotations

import math
import re
from typing import Optional

_CURRENCY_SYMBOLS = re.compile(r"[$£€¥]")
_DECIMAL_COMMA = re.compile(r",(?=\d{1,2}(?:[^\d\s]|$))")
_WHITESPACE = re.compile(r"\s+")
_PLAIN_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def _resolve_commas(text: str) -> str:
    decimal_commas = [m.start() for m in _DECIMAL_COMMA.finditer(text)]
    if not decimal_commas:
        return text.replace(",", "")
    idx = decimal_commas[-1]
    return text[:idx].replace(",", "") + "." + text[idx + 1 :].replace(",", "")


def normalize_price(raw: Optional[str]) -> Optional[float]:
    """
    Convert a price string such as "$1,234" or "10,6" into a float.

    Returns None for missing, empty or non-numeric input; never raises.

    >>> normalize_price("10,600")
    10600.0
    >>> normalize_price("10,6")
    10.6
    >>> normalize_price("10,6 900")
    106900.0
    """
    if raw is None:
        return None
    cleaned = _CURRENCY_SYMBOLS.sub("", str(raw)).strip()
    if not cleaned:
        return None
    cleaned = _WHITESPACE.sub("", _resolve_commas(cleaned))
    if not _PLAIN_NUMBER.fullmatch(cleaned):
        return None
    value = float(cleaned)
    if not math.isfinite(value):
        return None
    return value


__all__ = ["normalize_price"]
