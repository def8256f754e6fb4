"""Namecheap XML API backend (namecheap.domains.check)."""

import asyncio
import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

import httpx

from ..errors import ConfigurationError, UpstreamError
from .base import AvailabilityChecker, AvailabilityResult, AvailabilityStatus

logger = logging.getLogger(__name__)

NC_XML_NS = "{http://api.namecheap.com/xml.response}"

# Namecheap rejects DomainList values longer than this
MAX_DOMAINS_PER_REQUEST = 50


def parse_check_response(xml_text: str) -> Dict[str, bool]:
    """Map domain -> available flag from a domains.check XML response."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise UpstreamError(f"Unparseable Namecheap response: {e}") from e

    errors = root.findall(f".//{NC_XML_NS}Errors/{NC_XML_NS}Error")
    if errors:
        messages = []
        for e in errors:
            code = e.attrib.get("Number", "?")
            messages.append(f"{code}:{(e.text or '').strip()}")
        raise UpstreamError("; ".join(messages))

    flags = {}
    for elem in root.findall(f".//{NC_XML_NS}DomainCheckResult"):
        domain = elem.attrib.get("Domain", "").lower()
        flags[domain] = elem.attrib.get("Available", "false").lower() == "true"
    return flags


class NamecheapChecker(AvailabilityChecker):
    """Registrar-authoritative checks through the Namecheap XML API."""

    name = 'namecheap'

    def __init__(self, api_user: str, api_key: str, username: str = '',
                 client_ip: str = '127.0.0.1', sandbox: bool = False,
                 timeout: float = 3.0, max_concurrent: int = 50,
                 client: Optional[httpx.AsyncClient] = None):
        if not api_user or not api_key:
            raise ConfigurationError(
                "Namecheap backend needs NAMECHEAP_API_USER and NAMECHEAP_API_KEY"
            )
        super().__init__(timeout=timeout, max_concurrent=max_concurrent, client=client)
        self.api_user = api_user
        self.api_key = api_key
        self.username = username or api_user
        self.client_ip = client_ip
        self.base = "https://api.sandbox.namecheap.com" if sandbox else "https://api.namecheap.com"

    async def _check(self, domains: List[str]) -> Dict[str, bool]:
        params = {
            "ApiUser": self.api_user,
            "ApiKey": self.api_key,
            "UserName": self.username,
            "ClientIp": self.client_ip,
            "Command": "namecheap.domains.check",
            "DomainList": ",".join(domains),
        }
        response = await self.client.get(f"{self.base}/xml.response", params=params)
        response.raise_for_status()
        return parse_check_response(response.text)

    async def _check_group(self, domains: List[str]) -> List[AvailabilityResult]:
        try:
            flags = await asyncio.wait_for(self._check(domains), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("Namecheap check timed out for %d domains", len(domains))
            return [self.result(d, AvailabilityStatus.TIMEOUT) for d in domains]
        except (httpx.HTTPError, UpstreamError) as e:
            logger.error("[API ERROR] %s", e)
            return [self.result(d, AvailabilityStatus.ERROR, detail=str(e)) for d in domains]

        results = []
        for domain in domains:
            if domain not in flags:
                results.append(self.result(domain, AvailabilityStatus.ERROR, detail='no DomainCheckResult'))
            else:
                status = AvailabilityStatus.AVAILABLE if flags[domain] else AvailabilityStatus.UNAVAILABLE
                results.append(self.result(domain, status))
        return results

    async def probe(self, domain: str) -> AvailabilityResult:
        return (await self._check_group([domain]))[0]

    async def probe_many(self, domains: List[str]) -> List[AvailabilityResult]:
        groups = [domains[i:i + MAX_DOMAINS_PER_REQUEST]
                  for i in range(0, len(domains), MAX_DOMAINS_PER_REQUEST)]
        grouped = await asyncio.gather(*(self._check_group(g) for g in groups))
        return [result for group in grouped for result in group]
