"""Group available domains into labelled buckets with a text model."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from ..errors import CategorizationFailure, UpstreamError
from .llm_client import TextModel

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "Available Domains"
LEFTOVER_CATEGORY = "Other"

CATEGORY_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "category": {"type": "STRING"},
            "domains": {"type": "ARRAY", "items": {"type": "STRING"}},
        },
        "required": ["category", "domains"],
    },
}

PROMPT_TEMPLATE = (
    'Categorize the following list of available domain names into logical groups like '
    '"Business", "Technology", "Creative", "Short & Brandable", etc. The domains are: {domains}'
)

FENCE = re.compile(r'^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$', re.DOTALL)


@dataclass
class CategoryGroup:
    category: str
    domains: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'category': self.category, 'domains': list(self.domains)}


def strip_code_fence(text: str) -> str:
    """Remove an optional markdown fence around a JSON payload."""
    match = FENCE.match(text)
    return match.group(1) if match else text.strip()


def parse_categories(text: str) -> List[CategoryGroup]:
    """Decode and validate ``[{category, domains}]``. Raises CategorizationFailure."""
    try:
        payload = json.loads(strip_code_fence(text))
    except ValueError as e:
        raise CategorizationFailure(f"Category response is not JSON: {e}") from e

    if not isinstance(payload, list):
        raise CategorizationFailure("Category response is not a list")

    groups = []
    for item in payload:
        if not isinstance(item, dict):
            raise CategorizationFailure("Category entry is not an object")
        category = item.get('category')
        domains = item.get('domains')
        if not isinstance(category, str) or not isinstance(domains, list):
            raise CategorizationFailure("Category entry lacks 'category' or 'domains'")
        if not all(isinstance(d, str) for d in domains):
            raise CategorizationFailure("Category domains must be strings")
        groups.append(CategoryGroup(category=category.strip() or LEFTOVER_CATEGORY,
                                    domains=[d.strip().lower() for d in domains]))
    return groups


class Categorizer:
    """Asks a text model to bucket domains; never fails the pipeline.

    On any upstream or decoding problem every domain lands in a single
    "Available Domains" group, in input order.
    """

    def __init__(self, model: TextModel):
        self.model = model

    @staticmethod
    def fallback(domains: List[str]) -> List[CategoryGroup]:
        return [CategoryGroup(category=FALLBACK_CATEGORY, domains=list(domains))]

    @staticmethod
    def reconcile(groups: List[CategoryGroup], domains: List[str]) -> List[CategoryGroup]:
        """Keep only input domains, each once; unmentioned ones go to "Other"."""
        wanted = set(domains)
        placed = set()
        cleaned = []
        for group in groups:
            members = []
            for domain in group.domains:
                if domain in wanted and domain not in placed:
                    placed.add(domain)
                    members.append(domain)
            if members:
                cleaned.append(CategoryGroup(category=group.category, domains=members))

        leftovers = [d for d in domains if d not in placed]
        if leftovers:
            cleaned.append(CategoryGroup(category=LEFTOVER_CATEGORY, domains=leftovers))
        return cleaned

    async def categorize(self, domains: Iterable[str]) -> List[CategoryGroup]:
        ordered = list(dict.fromkeys(domains))
        if not ordered:
            return []

        prompt = PROMPT_TEMPLATE.format(domains=', '.join(ordered))
        try:
            text = await self.model.generate_text(prompt, schema=CATEGORY_SCHEMA)
            groups = parse_categories(text)
        except UpstreamError as e:
            logger.warning("Categorization failed, using a single group: %s", e)
            return self.fallback(ordered)

        result = self.reconcile(groups, ordered)
        logger.info("Sorted %d domains into %d categories", len(ordered), len(result))
        return result
