"""Registrar bulk-check API backend (JSON)."""

import asyncio
import logging
from typing import Dict, List, Optional

import httpx

from ..errors import ConfigurationError
from .base import AvailabilityChecker, AvailabilityResult, AvailabilityStatus

logger = logging.getLogger(__name__)


class RegistrarChecker(AvailabilityChecker):
    """Authoritative availability from a registrar's bulk endpoint.

    POSTs a JSON array of domains and expects
    ``{"domains": [{"domain": ..., "available": bool}, ...]}`` back.
    A whole chunk goes out as one request.
    """

    name = 'registrar'

    def __init__(self, url: str, api_key: str, auth_header: str = 'X-API-Key',
                 timeout: float = 3.0, max_concurrent: int = 50,
                 client: Optional[httpx.AsyncClient] = None):
        if not url or not api_key:
            raise ConfigurationError(
                "Registrar backend needs checker.registrar_url and a registrar API key "
                "(REGISTRAR_API_KEY)"
            )
        super().__init__(timeout=timeout, max_concurrent=max_concurrent, client=client)
        self.url = url
        self.api_key = api_key
        self.auth_header = auth_header

    async def _post(self, domains: List[str]) -> Dict[str, bool]:
        response = await self.client.post(
            self.url,
            json=domains,
            headers={self.auth_header: self.api_key, 'accept': 'application/json'},
        )
        response.raise_for_status()
        payload = response.json()

        entries = payload.get('domains') if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise ValueError("registrar response has no 'domains' array")

        flags = {}
        for entry in entries:
            if not isinstance(entry, dict) or not isinstance(entry.get('available'), bool):
                continue
            flags[str(entry.get('domain', '')).lower()] = entry['available']
        return flags

    async def probe(self, domain: str) -> AvailabilityResult:
        return (await self.probe_many([domain]))[0]

    async def probe_many(self, domains: List[str]) -> List[AvailabilityResult]:
        if not domains:
            return []
        try:
            flags = await asyncio.wait_for(self._post(domains), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("Registrar check timed out for %d domains", len(domains))
            return [self.result(d, AvailabilityStatus.TIMEOUT) for d in domains]
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Registrar check failed: %s", e)
            return [self.result(d, AvailabilityStatus.ERROR, detail=str(e)) for d in domains]

        results = []
        for domain in domains:
            if domain not in flags:
                results.append(self.result(domain, AvailabilityStatus.ERROR, detail='missing from registrar response'))
            elif flags[domain]:
                results.append(self.result(domain, AvailabilityStatus.AVAILABLE))
            else:
                results.append(self.result(domain, AvailabilityStatus.UNAVAILABLE))
        return results
