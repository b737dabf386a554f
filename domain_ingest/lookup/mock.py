"""
Deterministic stand-in for the registrar, used when no credentials are configured.

Answers are derived from a 32-bit string hash of the domain, so the same domain
always gets the same availability and price across runs and processes: about
one domain in three is available, prices fall between 10 and 49 USD.
"""

from __future__ import annotations

from typing import Dict

from domain_ingest.domain.models import AvailabilityQuote
from domain_ingest.lookup.abstract import AbstractLookupService


def domain_hash(domain: str) -> int:
    """Signed 32-bit `h = h * 31 + ord(c)` hash."""
    value = 0
    for char in domain:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


class MockLookupService(AbstractLookupService):
    name: str = "mock"

    def __init__(self) -> None:
        self._cache: Dict[str, AvailabilityQuote] = {}
        self.calls = 0

    def _quote_for(self, domain: str) -> AvailabilityQuote:
        if domain not in self._cache:
            value = domain_hash(domain)
            self._cache[domain] = AvailabilityQuote(
                available=value % 3 == 0,
                price=float(10 + value % 40),
                currency="USD",
                period=1,
            )
        return self._cache[domain]

    async def check_availability(self, domain: str) -> AvailabilityQuote:
        self.calls += 1
        return self._quote_for(domain)


__all__ = ["MockLookupService", "domain_hash"]
