"""Form field and application question classification.

Public API:
    - ClassificationOrchestrator: Runs the field and question chains
    - PipelineState: Caches and rate limiter shared between requests
    - InferenceClient: Guarded remote inference with fallback output
    - build_provider(): Build the configured provider
    - match_by_rules(): Platform rule classification
    - score_by_heuristics(): Keyword heuristic classification
    - match_field_by_pattern() / match_question_by_pattern(): Regex matching
    - fuzzy_match(): Keyword-overlap question matching
    - validate_mapping() / value_for_purpose(): Check results against a profile
"""

from .cache import ResponseCache, field_cache_key, question_cache_key
from .exceptions import (
    InferenceError,
    ParseError,
    ProviderError,
    RateLimitExceeded,
    TransportError,
)
from .fuzzy import fuzzy_match
from .heuristics import get_suggestions, score_by_heuristics
from .inference import InferenceClient
from .orchestrator import ClassificationOrchestrator, build_provider
from .patterns import match_field_by_pattern, match_question_by_pattern
from .rate_limiter import RateLimiter, RateLimiterState
from .rules import match_by_rules
from .state import PipelineState
from .templates import DefaultTemplateLibrary, TemplateLibrary, TemplateMatch, template_values
from .validation import MappingIssue, MappingValidation, validate_mapping, value_for_purpose

__all__ = [
    "ClassificationOrchestrator",
    "DefaultTemplateLibrary",
    "InferenceClient",
    "MappingIssue",
    "MappingValidation",
    "PipelineState",
    "RateLimiter",
    "RateLimiterState",
    "ResponseCache",
    "TemplateLibrary",
    "TemplateMatch",
    "build_provider",
    "field_cache_key",
    "fuzzy_match",
    "get_suggestions",
    "match_by_rules",
    "match_field_by_pattern",
    "match_question_by_pattern",
    "question_cache_key",
    "score_by_heuristics",
    "template_values",
    "validate_mapping",
    "value_for_purpose",
    # Errors
    "InferenceError",
    "ParseError",
    "ProviderError",
    "RateLimitExceeded",
    "TransportError",
]
