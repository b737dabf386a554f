"""
Lookup package: the availability service interface, its implementations and
the throttled batcher.

`build_lookup_service` picks the implementation from settings, so callers and
the batcher never branch on whether lookups are live or mocked.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

from domain_ingest.config import Settings, get_settings
from domain_ingest.exceptions import ConfigurationError
from domain_ingest.lookup.abstract import AbstractLookupService, DomainLookupService
from domain_ingest.lookup.batcher import batch_check
from domain_ingest.lookup.godaddy import GoDaddyLookupService
from domain_ingest.lookup.mock import MockLookupService
from domain_ingest.utils.logging import get_logger

log = get_logger(__name__)


def _godaddy(settings: Settings) -> DomainLookupService:
    if not settings.has_godaddy_credentials:
        raise ConfigurationError(
            "GoDaddy lookups need GODADDY_BASE_URL, GODADDY_API_KEY and GODADDY_API_SECRET"
        )
    return GoDaddyLookupService(
        base_url=settings.godaddy_base_url or "",
        api_key=settings.godaddy_api_key or "",
        api_secret=settings.godaddy_api_secret or "",
        timeout=settings.godaddy_timeout_seconds,
    )


def _lookup_factories() -> Dict[str, Callable[[Settings], DomainLookupService]]:
    """Registry of available lookup backends."""
    return {
        "godaddy": _godaddy,
        "mock": lambda settings: MockLookupService(),
    }


def available_backends() -> List[str]:
    return sorted(_lookup_factories().keys()) + ["auto"]


def _resolve_auto(settings: Settings) -> str:
    if settings.has_godaddy_credentials:
        return "godaddy"
    if settings.app_env == "development":
        log.warning("GoDaddy credentials not configured; using mock lookups for development")
        return "mock"
    raise ConfigurationError(
        f"GoDaddy credentials not configured and APP_ENV={settings.app_env!r} is not development"
    )


def build_lookup_service(
    settings: Optional[Settings] = None, backend: Optional[str] = None
) -> DomainLookupService:
    """
    Build the lookup service named by `backend` (default: settings.lookup_backend).

    "auto" selects the live registrar when credentials are present, the mock in
    development, and fails otherwise.
    """
    settings = settings or get_settings()
    name = backend or settings.lookup_backend
    if name == "auto":
        name = _resolve_auto(settings)
    factories = _lookup_factories()
    if name not in factories:
        raise ConfigurationError(
            f"Unknown lookup backend '{name}'. Available: {', '.join(available_backends())}"
        )
    return factories[name](settings)


__all__ = [
    "AbstractLookupService",
    "DomainLookupService",
    "GoDaddyLookupService",
    "MockLookupService",
    "available_backends",
    "batch_check",
    "build_lookup_service",
]
