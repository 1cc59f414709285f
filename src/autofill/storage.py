"""Key/value settings store boundary.

The pipeline reads exactly one thing from the store: a user-supplied provider
API key kept under ``settings.geminiApiKey``. The store is optional; any
failure to read it is logged and the configured default is used instead.
"""

import logging
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger("autofill.storage")

__all__ = [
    "API_KEY_SETTING",
    "SETTINGS_KEY",
    "InMemoryStore",
    "KeyValueStore",
    "load_settings",
    "resolve_api_key",
]

SETTINGS_KEY = "settings"
API_KEY_SETTING = "geminiApiKey"


@runtime_checkable
class KeyValueStore(Protocol):
    """Async key/value store (browser storage, file, redis, ...)."""

    async def get(self, keys: list[str]) -> dict[str, Any]:
        """Return a mapping for the requested keys that exist."""
        ...

    async def set(self, items: dict[str, Any]) -> None:
        """Persist every key/value pair in ``items``."""
        ...


class InMemoryStore:
    """Process-local KeyValueStore, used as the default and in tests."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    async def get(self, keys: list[str]) -> dict[str, Any]:
        return {k: self._data[k] for k in keys if k in self._data}

    async def set(self, items: dict[str, Any]) -> None:
        self._data.update(items)


async def load_settings(store: KeyValueStore | None) -> dict[str, Any]:
    """Read the settings mapping from the store.

    Returns:
        The stored settings dict, or an empty dict when the store is absent,
        empty, malformed, or raises.
    """
    if store is None:
        return {}

    try:
        result = await store.get([SETTINGS_KEY])
    except Exception as e:
        logger.warning(
            "settings_store_read_failed",
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        return {}

    settings = result.get(SETTINGS_KEY) if isinstance(result, dict) else None
    if not isinstance(settings, dict):
        return {}
    return settings


async def resolve_api_key(store: KeyValueStore | None, default: str) -> str:
    """Resolve the provider API key, preferring the user-supplied one.

    Args:
        store: Optional settings store
        default: Built-in key from configuration

    Returns:
        The stored key if non-empty, otherwise ``default``.
    """
    settings = await load_settings(store)
    stored = settings.get(API_KEY_SETTING)
    if isinstance(stored, str) and stored.strip():
        return stored.strip()
    return default
