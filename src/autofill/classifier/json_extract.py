"""Extract the first well-formed JSON value from free-form model output.

Models wrap JSON in prose and markdown fences. A greedy regex would span from
the first bracket to the last one in the text, so this scans for a balanced
candidate instead, skipping brackets that appear inside string literals.
"""

import json
import logging
from typing import Any, Literal, Optional

from .exceptions import ParseError

logger = logging.getLogger("autofill.classifier.json_extract")

__all__ = ["extract_first_json"]

_OPENERS = {"[": "]", "{": "}"}


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Index one past the bracket closing ``text[start]``, or None."""
    stack = []
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in ("]", "}"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i + 1

    return None


def extract_first_json(
    text: str, kind: Literal["array", "object"] = "array"
) -> Any:
    """Return the first balanced JSON array or object found in ``text``.

    Args:
        text: Raw model output
        kind: "array" for field batches, "object" for question analyses

    Returns:
        The decoded list (array) or dict (object).

    Raises:
        ParseError: If no candidate of the requested kind decodes.

    Examples:
        >>> extract_first_json('Sure! [{"fieldIndex": 1}] Hope this helps [x]')
        [{'fieldIndex': 1}]
    """
    if not text:
        raise ParseError("Empty response")

    opener = "[" if kind == "array" else "{"
    expected = list if kind == "array" else dict

    start = text.find(opener)
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            try:
                value = json.loads(text[start:end])
            except json.JSONDecodeError:
                pass
            else:
                if isinstance(value, expected):
                    return value
        start = text.find(opener, start + 1)

    logger.warning(
        "json_extract_failed",
        extra={"kind": kind, "response_preview": text[:200]},
    )
    raise ParseError(f"No JSON {kind} found in response")
