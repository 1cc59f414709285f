"""Logging setup for the ``autofill`` logger tree.

Modules emit short snake_case events and put details in ``extra``::

    logger.info("cache_hit", extra={"cache_key": key[:16]})

Output is one JSON object per line unless AUTOFILL_LOG_FORMAT=text.
"""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Optional

__all__ = [
    "HANDLER_NAME",
    "ROOT_LOGGER",
    "SENSITIVE_KEYS",
    "StructuredFormatter",
    "TextFormatter",
    "configure_logging",
]

ROOT_LOGGER = "autofill"
HANDLER_NAME = "autofill.stream"

SENSITIVE_KEYS = frozenset(
    {
        "api_key", "apikey", "key", "token", "secret",
        "password", "auth", "authorization", "bearer", "credential",
    }
)

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "taskName",
}


def _context(record: logging.LogRecord) -> dict:
    context = {}
    for name, value in vars(record).items():
        if name in _RECORD_ATTRS or name.startswith("_"):
            continue
        context[name] = "[REDACTED]" if name.lower() in SENSITIVE_KEYS else value
    return context


class StructuredFormatter(logging.Formatter):
    """One JSON object per record; extras go under ``context`` with secrets redacted."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    def __init__(self):
        super().__init__(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def _own_handler(logger: logging.Logger) -> Optional[logging.Handler]:
    for handler in logger.handlers:
        if handler.get_name() == HANDLER_NAME:
            return handler
    return None


def configure_logging(level: Optional[str] = None) -> None:
    """Attach the autofill stream handler and set the level.

    ``level`` falls back to AUTOFILL_LOG_LEVEL, then INFO. Safe to call
    repeatedly: the handler is found by name and only its formatter and
    the logger level are refreshed. Handlers installed by anyone else
    are left in place.
    """
    level = level or os.getenv("AUTOFILL_LOG_LEVEL", "INFO")
    text = os.getenv("AUTOFILL_LOG_FORMAT", "json").lower() == "text"

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = _own_handler(logger)
    if handler is None:
        handler = logging.StreamHandler()
        handler.set_name(HANDLER_NAME)
        logger.addHandler(handler)
    handler.setFormatter(TextFormatter() if text else StructuredFormatter())

    logger.propagate = False
