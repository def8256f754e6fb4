from .normalizer import normalize, extract_domains, parse_domain_lines, unique_domains, read_domain_file
from .logs import setup_logging

__all__ = [
    'normalize', 'extract_domains', 'parse_domain_lines', 'unique_domains',
    'read_domain_file', 'setup_logging',
]
