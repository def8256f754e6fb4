"""DomainPulse - check domain availability and brainstorm names with AI."""

__version__ = "0.1.0"
