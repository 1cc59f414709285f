"""Base provider abstract class for remote inference.

Defines the interface every provider implements: one prompt in, the model's
raw text out. Structured parsing happens in the InferenceClient so all
providers share one extraction path.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from ..exceptions import ParseError, ProviderError, TransportError

logger = logging.getLogger("autofill.classifier.providers")

__all__ = ["BaseProvider"]


class BaseProvider(ABC):
    """Abstract base class for inference providers.

    All providers (Gemini, Ollama) must implement this interface.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        temperature: float = 0.1,
        max_output_tokens: int = 2048,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize provider.

        Args:
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            max_output_tokens: Upper bound on generated tokens
            client: Pre-built HTTP client (tests inject one with MockTransport)
        """
        self.timeout = timeout
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    @abstractmethod
    def name(self) -> str:
        """Get provider name for logging and metrics."""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Send ``prompt`` and return the model's text.

        Raises:
            TransportError: Network failure or timeout
            ProviderError: Non-success status or missing credentials
            ParseError: Response envelope lacks the generated text
        """

    async def _post_json(self, url: str, payload: dict) -> Any:
        """POST ``payload`` and decode the JSON response body."""
        try:
            response = await self._client.post(url, json=payload)
        except httpx.TimeoutException as e:
            logger.error("provider_timeout", extra={"provider": self.name, "error": str(e)})
            raise TransportError(f"{self.name} request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error("provider_http_error", extra={"provider": self.name, "error": str(e)})
            raise TransportError(f"{self.name} HTTP error: {e}") from e

        if not response.is_success:
            message = _error_message(response)
            logger.error(
                "provider_error_status",
                extra={
                    "provider": self.name,
                    "status_code": response.status_code,
                    "error": message,
                },
            )
            raise ProviderError(message, status=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(
                f"{self.name} returned a non-JSON body", status=response.status_code
            ) from e

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()


def _error_message(response: httpx.Response) -> str:
    """Pull ``error.message`` from a provider error body, else the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error

    return response.reason_phrase or f"HTTP {response.status_code}"
