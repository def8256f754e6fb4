"""DNS-over-HTTPS availability checker."""

import asyncio
import logging
from typing import Optional

import httpx

from .base import AvailabilityChecker, AvailabilityResult, AvailabilityStatus

logger = logging.getLogger(__name__)

NXDOMAIN = 3


class DoHChecker(AvailabilityChecker):
    """Fast availability estimate from an NS lookup over a JSON DoH resolver.

    NXDOMAIN is taken to mean "probably available". This is a heuristic: a
    name can be NXDOMAIN yet reserved, so results are advisory.
    """

    name = 'doh'

    def __init__(self, resolver_url: str = 'https://cloudflare-dns.com/dns-query',
                 timeout: float = 3.0, max_concurrent: int = 50,
                 client: Optional[httpx.AsyncClient] = None):
        super().__init__(timeout=timeout, max_concurrent=max_concurrent, client=client)
        self.resolver_url = resolver_url

    async def _query(self, domain: str) -> dict:
        response = await self.client.get(
            self.resolver_url,
            params={'name': domain, 'type': 'NS'},
            headers={'accept': 'application/dns-json'},
        )
        response.raise_for_status()
        return response.json()

    async def probe(self, domain: str) -> AvailabilityResult:
        try:
            # wait_for bounds the whole request, httpx only bounds each phase
            data = await asyncio.wait_for(self._query(domain), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("DoH lookup timed out for %s", domain)
            return self.result(domain, AvailabilityStatus.TIMEOUT)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("DoH lookup failed for %s: %s", domain, e)
            return self.result(domain, AvailabilityStatus.ERROR, detail=str(e))

        status = data.get('Status') if isinstance(data, dict) else None
        if not isinstance(status, int) or isinstance(status, bool):
            logger.warning("DoH response for %s has no Status field", domain)
            return self.result(domain, AvailabilityStatus.ERROR, detail='malformed resolver response')

        if status == NXDOMAIN:
            return self.result(domain, AvailabilityStatus.AVAILABLE)
        return self.result(domain, AvailabilityStatus.UNAVAILABLE)
