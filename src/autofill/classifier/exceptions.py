"""Inference error kinds.

All of these are caught at the InferenceClient boundary and turned into
fallback output; none reach the orchestrator's caller.
"""

from typing import Optional

__all__ = [
    "InferenceError",
    "ParseError",
    "ProviderError",
    "RateLimitExceeded",
    "TransportError",
]


class InferenceError(Exception):
    """Base class for remote inference failures.

    Attributes:
        status: HTTP status when one was received, else None
        message: Provider or local error message
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message if status is None else f"{status} - {message}")
        self.status = status
        self.message = message


class RateLimitExceeded(InferenceError):
    """Admission denied locally. Expected; routes to fallback."""


class TransportError(InferenceError):
    """Network failure or timeout talking to the provider."""


class ProviderError(InferenceError):
    """Provider answered with a non-success status."""


class ParseError(InferenceError):
    """Response held no extractable or decodable JSON."""
