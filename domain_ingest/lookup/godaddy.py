"""
GoDaddy-compatible registrar availability client.

Issues `GET /v1/domains/available?domain=<name>` with `sso-key` authentication
over an `httpx.AsyncClient`. Transient transport errors (connect failures,
read timeouts) are retried with tenacity; HTTP error statuses and malformed
payloads are reported as `LookupFailure` right away.

The client is created lazily inside the running event loop and dropped by
`aclose()`, so the same service instance can serve several pipeline runs,
each with its own `asyncio.run`.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from domain_ingest.domain.models import AvailabilityQuote
from domain_ingest.exceptions import LookupFailure
from domain_ingest.lookup.abstract import AbstractLookupService
from domain_ingest.utils.logging import get_logger

log = get_logger(__name__)

AVAILABILITY_PATH = "/v1/domains/available"


class GoDaddyLookupService(AbstractLookupService):
    """
    Live availability lookups against the registrar's REST API.

    Prices come back in cents and are converted to currency units.
    """

    name: str = "godaddy"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        api_secret: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = {
            "Authorization": f"sso-key {api_key}:{api_secret}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _fetch(self, domain: str) -> Dict[str, Any]:
        response = await self._get_client().get(AVAILABILITY_PATH, params={"domain": domain})
        response.raise_for_status()
        return response.json()

    @staticmethod
    def _parse(payload: Dict[str, Any]) -> AvailabilityQuote:
        if "available" not in payload:
            raise ValueError("response has no 'available' field")
        price = payload.get("price")
        return AvailabilityQuote(
            available=bool(payload["available"]),
            price=price / 100 if price else None,
            currency=payload.get("currency") or "USD",
            period=payload.get("period") or 1,
        )

    async def check_availability(self, domain: str) -> AvailabilityQuote:
        try:
            payload = await self._fetch(domain)
            return self._parse(payload)
        except httpx.HTTPStatusError as exc:
            log.warning(
                "Registrar rejected availability request",
                extra={"domain": domain, "status_code": exc.response.status_code},
            )
            raise LookupFailure(domain, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            log.warning("Registrar unreachable", extra={"domain": domain, "error": str(exc)})
            raise LookupFailure(domain, str(exc) or type(exc).__name__) from exc
        except (ValueError, TypeError, AttributeError) as exc:
            raise LookupFailure(domain, f"malformed response: {exc}") from exc

    async def aclose(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()


__all__ = ["AVAILABILITY_PATH", "GoDaddyLookupService"]
