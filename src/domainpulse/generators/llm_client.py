"""
Generative text client - abstract port plus a Gemini REST adapter.

The generator and categorizer only depend on ``TextModel``; tests swap in a
fake implementation.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ..errors import ConfigurationError, GenerationFailure

logger = logging.getLogger(__name__)


class TextModel(ABC):
    """Abstract interface for generative text providers."""

    @abstractmethod
    async def generate_text(self, prompt: str, schema: Optional[Dict[str, Any]] = None) -> str:
        """
        Send a single prompt and return the response text.

        Args:
            prompt: Natural-language instruction
            schema: Optional response schema; when given the provider is asked
                for JSON matching it

        Raises:
            GenerationFailure on transport errors or empty output
        """

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the current model name."""

    async def aclose(self):
        pass


class GeminiModel(TextModel):
    """Gemini adapter using the generateContent REST endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ConfigurationError("Set GEMINI_API_KEY (or ai.api_key) to use the AI generator")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def get_model_name(self) -> str:
        return self.model

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _build_body(self, prompt: str, schema: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        body: Dict[str, Any] = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            }
        return body

    async def generate_text(self, prompt: str, schema: Optional[Dict[str, Any]] = None) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            response = await self.client.post(
                url,
                params={"key": self.api_key},
                json=self._build_body(prompt, schema),
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise GenerationFailure(f"{self.model} returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise GenerationFailure(f"{self.model} request failed: {e}") from e

        text = self._extract_text(data)
        if not text.strip():
            feedback = data.get("promptFeedback")
            reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            raise GenerationFailure(f"{self.model} returned no text" + (f" ({reason})" if reason else ""))

        logger.debug("%s answered with %d characters", self.model, len(text))
        return text

    def _extract_text(self, data: Any) -> str:
        """Text of the first candidate that has any. Raises GenerationFailure on an unexpected shape."""
        if not isinstance(data, dict):
            raise GenerationFailure(f"{self.model} response is not a JSON object")
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise GenerationFailure(f"{self.model} response has malformed candidates")

        for candidate in candidates:
            if not isinstance(candidate, dict):
                raise GenerationFailure(f"{self.model} response has a malformed candidate")
            content = candidate.get("content")
            if content is None:
                # Blocked candidates carry only a finishReason
                continue
            if not isinstance(content, dict):
                raise GenerationFailure(f"{self.model} response has a malformed candidate")
            parts = content.get("parts") or []
            if not isinstance(parts, list):
                raise GenerationFailure(f"{self.model} response has malformed parts")
            text = "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))
            if text:
                return text
        return ""


def create_model(ai_cfg, client: Optional[httpx.AsyncClient] = None) -> TextModel:
    """Build the configured text model. Raises ConfigurationError without an API key."""
    return GeminiModel(
        api_key=ai_cfg.api_key,
        model=ai_cfg.model,
        base_url=ai_cfg.base_url,
        timeout=ai_cfg.timeout,
        client=client,
    )
