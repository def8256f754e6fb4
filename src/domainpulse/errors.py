"""Exception types shared across checkers, generators and the web layer."""


class DomainPulseError(Exception):
    """Base class for all errors raised by this package."""


class InputError(DomainPulseError):
    """Empty or invalid domain list, or missing generator parameters."""


class ConfigurationError(DomainPulseError):
    """Missing credentials or invalid settings. Fatal for the whole run."""


class UpstreamError(DomainPulseError):
    """Transport or parse failure talking to an external service."""


class UpstreamTimeout(UpstreamError):
    """An external service did not answer within its time budget."""


class GenerationFailure(UpstreamError):
    """The generative text service failed to produce usable output."""


class CategorizationFailure(UpstreamError):
    """The categorization response could not be decoded."""
