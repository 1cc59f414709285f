"""Keyword-overlap similarity for questions no regex matched.

Keywords are mined from the question regex sources themselves, so the two
tables can never drift apart.
"""

import logging
import re
from functools import lru_cache
from typing import Optional

from .config import FUZZY_CONFIDENCE_SCALE, FUZZY_MIN_TOKEN_LENGTH, FUZZY_SIMILARITY_FLOOR
from .patterns import QUESTION_PATTERNS

logger = logging.getLogger("autofill.classifier.fuzzy")

__all__ = ["extract_keywords", "fuzzy_match", "tokenize"]

_WORD = re.compile(r"[a-z]+")
_ESCAPE = re.compile(r"\\[a-zA-Z]")


def tokenize(text: str) -> list[str]:
    """Alphabetic lower-cased words long enough to carry meaning."""
    return [w for w in _WORD.findall(text.lower()) if len(w) >= FUZZY_MIN_TOKEN_LENGTH]


def extract_keywords(patterns: list[str]) -> list[str]:
    keywords: list[str] = []
    for source in patterns:
        keywords.extend(tokenize(_ESCAPE.sub(" ", source)))
    return keywords


@lru_cache(maxsize=1)
def _category_keywords() -> tuple[tuple[str, tuple[str, ...]], ...]:
    return tuple(
        (category, tuple(extract_keywords(patterns)))
        for category, patterns in QUESTION_PATTERNS.items()
    )


def _overlaps(token: str, keywords: tuple[str, ...]) -> bool:
    return any(token in keyword or keyword in token for keyword in keywords)


def fuzzy_match(text: str) -> Optional[tuple[str, float]]:
    """Find the question category sharing the most keywords with ``text``.

    similarity = overlapping tokens / tokens. A category must score strictly
    above FUZZY_SIMILARITY_FLOOR; the earliest category wins ties.

    Returns:
        (category, similarity * FUZZY_CONFIDENCE_SCALE) or None.
    """
    tokens = tokenize(text or "")
    if not tokens:
        return None

    best_category: Optional[str] = None
    best_similarity = 0.0

    for category, keywords in _category_keywords():
        score = sum(1 for token in tokens if _overlaps(token, keywords))
        similarity = score / len(tokens)
        if similarity > FUZZY_SIMILARITY_FLOOR and similarity > best_similarity:
            best_category = category
            best_similarity = similarity

    if best_category is None:
        return None

    confidence = best_similarity * FUZZY_CONFIDENCE_SCALE
    logger.debug(
        "fuzzy_match",
        extra={
            "category": best_category,
            "similarity": best_similarity,
            "confidence": confidence,
        },
    )
    return best_category, confidence
