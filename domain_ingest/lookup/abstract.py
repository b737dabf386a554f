"""
Domain lookup service interface.

Concrete services (the registrar HTTP client, the deterministic mock) implement
the `DomainLookupService` protocol. Implementations must be safe to call
concurrently and report a failed lookup by raising, so the batcher can isolate
it from sibling lookups.
"""

from __future__ import annotations

import abc
from typing import Protocol, runtime_checkable

from domain_ingest.domain.models import AvailabilityQuote


@runtime_checkable
class DomainLookupService(Protocol):
    """
    Common interface all availability lookup services implement.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier, used in logs and by the factory.
    """

    name: str

    async def check_availability(self, domain: str) -> AvailabilityQuote:
        """
        Ask whether `domain` can be registered and at what price.

        Raises
        ------
        LookupFailure
            If the service could not answer for this domain.
        """
        ...


class AbstractLookupService(abc.ABC):
    """
    Optional ABC helper for class-based implementations.

    Subclasses set `name` and implement `check_availability`; services holding
    network resources override `aclose`.
    """

    name: str

    @abc.abstractmethod
    async def check_availability(self, domain: str) -> AvailabilityQuote:  # pragma: no cover - interface only
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release client resources; the service stays usable afterwards."""
        return None


__all__ = ["AbstractLookupService", "DomainLookupService"]
