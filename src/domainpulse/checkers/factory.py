"""Build the availability checker selected in the configuration."""

from typing import Optional

import httpx

from ..config import CheckerConfig
from ..errors import ConfigurationError
from .base import AvailabilityChecker


def create_checker(cfg: CheckerConfig, client: Optional[httpx.AsyncClient] = None) -> AvailabilityChecker:
    """
    Create a checker for ``cfg.backend``.

    Raises ConfigurationError for unknown backends or missing credentials.
    """
    if cfg.backend == 'doh':
        from .doh_checker import DoHChecker
        return DoHChecker(
            resolver_url=cfg.resolver_url,
            timeout=cfg.timeout,
            max_concurrent=cfg.max_concurrent,
            client=client,
        )

    elif cfg.backend == 'dns':
        from .dns_checker import DNSChecker
        return DNSChecker(timeout=cfg.timeout, max_concurrent=cfg.max_concurrent)

    elif cfg.backend == 'registrar':
        from .registrar_checker import RegistrarChecker
        return RegistrarChecker(
            url=cfg.registrar_url,
            api_key=cfg.registrar_api_key,
            auth_header=cfg.registrar_auth_header,
            timeout=cfg.timeout,
            max_concurrent=cfg.max_concurrent,
            client=client,
        )

    elif cfg.backend == 'namecheap':
        from .namecheap_checker import NamecheapChecker
        return NamecheapChecker(
            api_user=cfg.namecheap_api_user,
            api_key=cfg.namecheap_api_key,
            username=cfg.namecheap_username,
            client_ip=cfg.namecheap_client_ip,
            sandbox=cfg.namecheap_sandbox,
            timeout=cfg.timeout,
            max_concurrent=cfg.max_concurrent,
            client=client,
        )

    raise ConfigurationError(f"Unknown checker backend: {cfg.backend!r}")
