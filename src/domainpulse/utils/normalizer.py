"""Domain cleanup and extraction from user input."""

import re
from pathlib import Path
from typing import Iterable, List

from ..errors import InputError

SCHEME_PREFIX = re.compile(r'^(https?://)?(www\.)?')

# label(.label)+.tld - labels alphanumeric with internal hyphens, tld 2+ letters
DOMAIN_PATTERN = re.compile(r'(?:[a-z0-9]+(?:-[a-z0-9]+)*\.)+[a-z]{2,}', re.IGNORECASE)


def normalize(raw: str) -> str:
    """Clean a raw string into a comparable domain token.

    Trims, lowercases, strips an optional scheme and ``www.`` and drops
    everything from the first ``/`` on. Never fails; an empty string is a
    possible result and callers filter it out.
    """
    cleaned = raw.strip().lower()
    # Strip repeatedly so the result is a fixed point (e.g. "www.www.x.com").
    while True:
        stripped = SCHEME_PREFIX.sub('', cleaned, count=1)
        stripped = stripped.split('/')[0].strip()
        if stripped == cleaned:
            return cleaned
        cleaned = stripped


def unique_domains(raw_domains: Iterable[str]) -> List[str]:
    """Normalize and deduplicate, keeping first-seen order and dropping empties."""
    seen = set()
    domains = []
    for raw in raw_domains:
        domain = normalize(raw)
        if domain and domain not in seen:
            seen.add(domain)
            domains.append(domain)
    return domains


def parse_domain_lines(text: str) -> List[str]:
    """One candidate per line, as pasted into the checker."""
    return unique_domains(text.splitlines())


def extract_domains(text: str) -> List[str]:
    """Pull domain-shaped substrings out of free-form text such as a CSV export."""
    return unique_domains(match.group(0) for match in DOMAIN_PATTERN.finditer(text))


def read_domain_file(path) -> List[str]:
    """Read an uploaded text/CSV file and return the domains found in it."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding='utf-8', errors='replace')
    except OSError as e:
        raise InputError(f"Could not read {file_path}: {e}") from e

    if not text.strip():
        raise InputError(f"{file_path} is empty")

    domains = extract_domains(text)
    if not domains:
        raise InputError(f"No domains found in {file_path}")
    return domains
