"""AI-assisted domain name generator."""

import logging
from typing import List, Optional

from ..errors import GenerationFailure, InputError
from ..utils.normalizer import unique_domains
from .llm_client import TextModel

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    'Generate a creative list of {count} domain names based on the following keywords: "{keywords}". '
    'Only include domains with the following extensions (TLDs): {tlds}. '
    'The output should be a single plain text list of domain names, one per line. '
    'Do not include any other text or formatting.'
)


class NameGenerator:
    """Asks a text model for candidate domains built from keywords and TLDs."""

    def __init__(self, model: TextModel, count: int = 30):
        self.model = model
        self.count = count
        self.last_error: Optional[str] = None

    def build_prompt(self, keywords: str, tlds: str) -> str:
        return PROMPT_TEMPLATE.format(count=self.count, keywords=keywords.strip(), tlds=tlds.strip())

    @staticmethod
    def parse(text: str) -> List[str]:
        """One domain per line; blanks dropped, duplicates collapsed in order."""
        return unique_domains(line for line in text.splitlines() if line.strip())

    async def generate(self, keywords: str, tlds: str) -> List[str]:
        """Generate candidate domains.

        Returns an empty list when the model fails; ``last_error`` then holds
        a message suitable for showing to the user.
        """
        if not keywords or not keywords.strip() or not tlds or not tlds.strip():
            raise InputError("Keywords and TLDs are required for generator mode.")

        self.last_error = None
        try:
            text = await self.model.generate_text(self.build_prompt(keywords, tlds))
        except GenerationFailure as e:
            logger.warning("Domain generation failed: %s", e)
            self.last_error = f"Could not generate domain ideas: {e}"
            return []

        domains = self.parse(text)
        logger.info("Generated %d candidate domains for %r", len(domains), keywords)
        return domains
