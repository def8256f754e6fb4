"""Direct DNS availability checker built on dnspython."""

import logging
from typing import Optional

import dns.asyncresolver
import dns.exception
import dns.resolver

from .base import AvailabilityChecker, AvailabilityResult, AvailabilityStatus

logger = logging.getLogger(__name__)


class DNSChecker(AvailabilityChecker):
    """NS lookup through the system (or given) nameservers.

    Same heuristic as the DoH checker: NXDOMAIN means likely available.
    """

    name = 'dns'

    def __init__(self, timeout: float = 3.0, max_concurrent: int = 50,
                 resolver: Optional[dns.asyncresolver.Resolver] = None):
        super().__init__(timeout=timeout, max_concurrent=max_concurrent)
        self._resolver = resolver

    @property
    def resolver(self) -> dns.asyncresolver.Resolver:
        if self._resolver is None:
            self._resolver = dns.asyncresolver.Resolver()
            self._resolver.timeout = self.timeout
            self._resolver.lifetime = self.timeout
        return self._resolver

    async def probe(self, domain: str) -> AvailabilityResult:
        try:
            await self.resolver.resolve(domain, 'NS')
            return self.result(domain, AvailabilityStatus.UNAVAILABLE)
        except dns.resolver.NXDOMAIN:
            return self.result(domain, AvailabilityStatus.AVAILABLE)
        except dns.resolver.NoAnswer:
            # Name exists but is delegated elsewhere
            return self.result(domain, AvailabilityStatus.UNAVAILABLE)
        except dns.exception.Timeout:
            logger.warning("DNS lookup timed out for %s", domain)
            return self.result(domain, AvailabilityStatus.TIMEOUT)
        except dns.exception.DNSException as e:
            logger.warning("DNS lookup failed for %s: %s", domain, e)
            return self.result(domain, AvailabilityStatus.ERROR, detail=str(e))
