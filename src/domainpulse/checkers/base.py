"""Result types and the abstract availability checker."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx


class AvailabilityStatus(str, Enum):
    """Outcome of one probe. Timeout and Error mean 'unknown', not 'taken'."""
    AVAILABLE = "Available"
    UNAVAILABLE = "Unavailable"
    TIMEOUT = "Timeout"
    ERROR = "Error"


@dataclass(frozen=True)
class AvailabilityResult:
    """Result of a domain availability probe."""
    domain: str
    status: AvailabilityStatus
    method: str = ''
    detail: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.status is AvailabilityStatus.AVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'domain': self.domain,
            'availability': self.status.value,
        }
        if self.detail:
            result['detail'] = self.detail
        return result


class AvailabilityChecker(ABC):
    """One domain in, one AvailabilityResult out.

    ``probe`` must not raise for per-domain failures: timeouts and transport
    or parse errors are reported through the result status instead.
    Checkers own an ``httpx.AsyncClient`` unless one is passed in.
    """

    name = 'base'

    def __init__(self, timeout: float = 3.0, max_concurrent: int = 50,
                 client: Optional[httpx.AsyncClient] = None):
        self.timeout = timeout
        self.max_concurrent = max_concurrent
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    def result(self, domain: str, status: AvailabilityStatus, detail: Optional[str] = None) -> AvailabilityResult:
        return AvailabilityResult(domain=domain, status=status, method=self.name, detail=detail)

    @abstractmethod
    async def probe(self, domain: str) -> AvailabilityResult:
        """Check a single domain."""

    async def probe_many(self, domains: List[str]) -> List[AvailabilityResult]:
        """Probe several domains concurrently; results come back in input order."""
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def bounded(domain):
            async with semaphore:
                return await self.probe(domain)

        return list(await asyncio.gather(*(bounded(d) for d in domains)))
