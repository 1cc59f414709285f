"""Inference providers.

Each provider turns a prompt into raw model text over HTTP.
"""

from .base import BaseProvider
from .gemini import GeminiProvider
from .ollama import OllamaProvider

__all__ = [
    "BaseProvider",
    "GeminiProvider",
    "OllamaProvider",
]
