"""Gemini provider (default).

Uses the REST ``generateContent`` endpoint with the API key passed as a query
parameter.
"""

import logging
from typing import Optional

import httpx

from ..exceptions import ParseError, ProviderError
from .base import BaseProvider

logger = logging.getLogger("autofill.classifier.providers.gemini")

__all__ = ["GeminiProvider"]

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-pro"

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class GeminiProvider(BaseProvider):
    """Google Gemini provider."""

    def __init__(
        self,
        api_key: str = "",
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
        temperature: float = 0.1,
        max_output_tokens: int = 2048,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Gemini API key (resolved from the settings store upstream)
            base_url: REST base URL (default: public v1beta endpoint)
            model: Model name (default: gemini-pro)
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            max_output_tokens: Upper bound on generated tokens
            client: Optional pre-built HTTP client
        """
        super().__init__(timeout, temperature, max_output_tokens, client)
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.model = model or DEFAULT_MODEL

    @property
    def name(self) -> str:
        return "gemini"

    def _build_body(self, prompt: str) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": self.max_output_tokens,
            },
            "safetySettings": [
                {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
                for category in SAFETY_CATEGORIES
            ],
        }

    async def generate(self, prompt: str) -> str:
        """Generate text with Gemini.

        Raises:
            ProviderError: No API key configured, or a non-2xx response
            TransportError: Network failure or timeout
            ParseError: No candidate text in the response
        """
        if not self.api_key:
            raise ProviderError("API key not configured")

        url = f"{self.base_url}/models/{self.model}:generateContent?key={self.api_key}"
        data = await self._post_json(url, self._build_body(prompt))

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("gemini_empty_response", extra={"error": str(e)})
            raise ParseError("No content in response") from e

        if not isinstance(text, str) or not text:
            raise ParseError("No content in response")

        logger.info(
            "gemini_generation_success",
            extra={"model": self.model, "response_chars": len(text)},
        )
        return text
