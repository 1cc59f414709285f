"""Ollama provider for local inference.

Uses the Ollama API for free, local analysis.
"""

import logging
from typing import Optional

import httpx

from ..exceptions import ParseError
from .base import BaseProvider

logger = logging.getLogger("autofill.classifier.providers.ollama")

__all__ = ["OllamaProvider"]

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_MODEL = "llama3.2:3b"


class OllamaProvider(BaseProvider):
    """Ollama provider for local inference."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 30.0,
        temperature: float = 0.1,
        max_output_tokens: int = 2048,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Ollama provider.

        Args:
            base_url: Ollama API base URL
            model: Model name
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            max_output_tokens: Upper bound on generated tokens
            client: Optional pre-built HTTP client
        """
        super().__init__(timeout, temperature, max_output_tokens, client)
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.model = model or DEFAULT_MODEL

    @property
    def name(self) -> str:
        return "ollama"

    async def is_available(self) -> bool:
        """Check if Ollama is running and accessible."""
        try:
            response = await self._client.get(f"{self.base_url}/api/tags")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug("ollama_unavailable", extra={"error": str(e)})
            return False

    async def generate(self, prompt: str) -> str:
        data = await self._post_json(
            f"{self.base_url}/api/generate",
            {
                "model": self.model,
                "prompt": prompt,
                "stream": False,
                "options": {
                    "num_predict": self.max_output_tokens,
                    "temperature": self.temperature,
                },
            },
        )

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str) or not text:
            logger.error("ollama_empty_response")
            raise ParseError("No content in response")

        logger.info(
            "ollama_generation_success",
            extra={
                "model": self.model,
                "input_tokens": data.get("prompt_eval_count", 0),
                "output_tokens": data.get("eval_count", 0),
            },
        )
        return text
