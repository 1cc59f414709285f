"""Classifier constants.

Confidence ceilings are shared by every stage so that a cheaper, more certain
method never reports less than a less certain one.
"""

__all__ = [
    "ATS_CONFIDENCE",
    "FALLBACK_CONFIDENCE_FLOOR",
    "FALLBACK_REASONING",
    "FUZZY_CONFIDENCE_SCALE",
    "FUZZY_MIN_TOKEN_LENGTH",
    "FUZZY_SIMILARITY_FLOOR",
    "HEURISTIC_CONFIDENCE_CAP",
    "HEURISTIC_THRESHOLD",
    "PATTERN_CONFIDENCE",
    "TEMPLATE_EXACT_CONFIDENCE",
]

# =============================================================================
# CONFIDENCE CEILINGS BY METHOD
# =============================================================================
ATS_CONFIDENCE = 0.9
HEURISTIC_CONFIDENCE_CAP = 0.8
PATTERN_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE_FLOOR = 0.3

# =============================================================================
# STAGE THRESHOLDS
# =============================================================================
HEURISTIC_THRESHOLD = 0.3  # strictly greater than

FUZZY_SIMILARITY_FLOOR = 0.3  # strictly greater than
FUZZY_CONFIDENCE_SCALE = 0.7
FUZZY_MIN_TOKEN_LENGTH = 3

TEMPLATE_EXACT_CONFIDENCE = 0.9

FALLBACK_REASONING = "LLM analysis unavailable, using heuristic fallback"
