"""Remote inference with cache, admission control and graceful degradation.

Flow for both fields and questions:
1. Return a cached result if one is fresh (no quota consumed)
2. Ask the rate limiter; on denial return fallback output without any
   network attempt
3. Build the prompt and issue one provider call
4. Extract the first JSON array (fields) or object (question)
5. On success commit the limiter, write the cache and return

Every InferenceError is caught here. Callers always get a result.
"""

import logging
import time
from typing import Any, Optional, Sequence

from ..models import (
    AnalysisSource,
    ClassificationResult,
    Context,
    FieldDescriptor,
    FieldPurpose,
    Method,
    QuestionAnalysis,
    ResponseStructure,
    SuggestedLength,
)
from .cache import field_cache_key, question_cache_key
from .config import FALLBACK_CONFIDENCE_FLOOR, FALLBACK_REASONING
from .exceptions import (
    InferenceError,
    ParseError,
    ProviderError,
    RateLimitExceeded,
    TransportError,
)
from .json_extract import extract_first_json
from .metrics import (
    record_cache_lookup,
    record_fallback,
    record_inference,
    record_rate_limit_denial,
)
from .prompts import build_field_prompt, build_question_prompt
from .providers import BaseProvider
from .state import PipelineState
from .templates import TemplateLibrary, TemplateMatch

logger = logging.getLogger("autofill.classifier.inference")

__all__ = [
    "DEFAULT_QUESTION_CONFIDENCE",
    "UNRESOLVED",
    "InferenceClient",
    "error_analysis",
    "field_fallback",
    "generic_fallback_analysis",
    "merge_field_results",
    "parse_question_analysis",
    "template_analysis",
]

UNRESOLVED = ClassificationResult(FieldPurpose.UNKNOWN, 0.0, Method.FALLBACK)

DEFAULT_QUESTION_CONFIDENCE = 0.5


# =============================================================================
# FALLBACK OUTPUT
# =============================================================================


def field_fallback(prior: Sequence[ClassificationResult]) -> list[ClassificationResult]:
    """Degrade a batch: keep each purpose, mark the method as fallback.

    Fields that already carried a purpose are floored at
    FALLBACK_CONFIDENCE_FLOOR; unresolved fields keep their confidence.
    """
    results = []
    for p in prior:
        confidence = p.confidence
        if p.purpose != FieldPurpose.UNKNOWN:
            confidence = max(confidence, FALLBACK_CONFIDENCE_FLOOR)
        results.append(
            ClassificationResult(
                purpose=p.purpose,
                confidence=confidence,
                method=Method.FALLBACK,
                reasoning=FALLBACK_REASONING,
            )
        )
    return results


def template_analysis(match: TemplateMatch) -> QuestionAnalysis:
    return QuestionAnalysis(
        category=match.category or "general",
        question_type=match.key,
        key_points=(f"Matches template: {match.key}",),
        response_structure=ResponseStructure(
            opening="Use template response",
            body="Customize with personal details",
            closing="Professional closing",
        ),
        advice=("Personalize the template response", "Include specific examples"),
        suggested_length=SuggestedLength.MEDIUM,
        confidence=match.match_confidence,
        source=AnalysisSource.TEMPLATE_FALLBACK,
    )


def generic_fallback_analysis() -> QuestionAnalysis:
    return QuestionAnalysis(
        category="unknown",
        question_type="unknown",
        key_points=("Manual analysis required",),
        advice=("Review question manually", "Consider using a template"),
        suggested_length=SuggestedLength.MEDIUM,
        confidence=0.0,
        source=AnalysisSource.FALLBACK,
    )


def error_analysis() -> QuestionAnalysis:
    return QuestionAnalysis(
        category="unknown",
        question_type="unknown",
        advice=("Unable to analyze question automatically",),
        suggested_length=SuggestedLength.MEDIUM,
        confidence=0.0,
        source=AnalysisSource.ERROR,
    )


# =============================================================================
# RESPONSE PARSING
# =============================================================================


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def _as_confidence(raw: Any, default: float) -> float:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return _clamp(float(raw))
    except (TypeError, ValueError):
        return default


def _as_strings(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, list):
        return tuple(str(item) for item in raw if item is not None)
    if isinstance(raw, str) and raw:
        return (raw,)
    return ()


def merge_field_results(
    prior: Sequence[ClassificationResult], analysis: list
) -> list[ClassificationResult]:
    """Apply model output onto ``prior`` by 1-based ``fieldIndex``.

    Fields without an entry, and entries naming a purpose outside the
    taxonomy, keep their prior result. The first entry for an index wins.
    """
    by_index: dict[int, dict] = {}
    for item in analysis:
        if not isinstance(item, dict):
            continue
        index = item.get("fieldIndex")
        if isinstance(index, bool) or not isinstance(index, int):
            continue
        by_index.setdefault(index, item)

    merged = []
    for index, previous in enumerate(prior, start=1):
        item = by_index.get(index)
        if item is None:
            merged.append(previous)
            continue

        try:
            purpose = FieldPurpose(item.get("purpose"))
        except ValueError:
            logger.warning(
                "invalid_llm_purpose",
                extra={"field_index": index, "purpose": str(item.get("purpose"))},
            )
            merged.append(previous)
            continue

        merged.append(
            ClassificationResult(
                purpose=purpose,
                confidence=_as_confidence(item.get("confidence"), 0.0),
                method=Method.LLM,
                reasoning=str(item.get("reasoning") or ""),
            )
        )
    return merged


def parse_question_analysis(data: dict) -> QuestionAnalysis:
    structure = data.get("responseStructure")
    if not isinstance(structure, dict):
        structure = {}

    try:
        length = SuggestedLength(data.get("suggestedLength") or "medium")
    except ValueError:
        length = SuggestedLength.MEDIUM

    return QuestionAnalysis(
        category=str(data.get("category") or "unknown"),
        question_type=str(data.get("questionType") or "unknown"),
        key_points=_as_strings(data.get("keyPoints")),
        response_structure=ResponseStructure(
            opening=str(structure.get("opening") or ""),
            body=str(structure.get("body") or ""),
            closing=str(structure.get("closing") or ""),
        ),
        advice=_as_strings(data.get("advice")),
        suggested_length=length,
        confidence=_as_confidence(data.get("confidence"), DEFAULT_QUESTION_CONFIDENCE),
        source=AnalysisSource.LLM,
    )


def _failure_reason(error: InferenceError) -> str:
    if isinstance(error, RateLimitExceeded):
        return "rate_limited"
    if isinstance(error, ParseError):
        return "parse"
    if isinstance(error, ProviderError):
        return "provider"
    if isinstance(error, TransportError):
        return "transport"
    return "error"


# =============================================================================
# CLIENT
# =============================================================================


class InferenceClient:
    """Guards one provider with the shared cache and rate limiter.

    Example:
        >>> client = InferenceClient(GeminiProvider(api_key=key), PipelineState.from_config())
        >>> results = await client.classify_fields(fields, context)
    """

    def __init__(
        self,
        provider: BaseProvider,
        state: PipelineState,
        template_library: Optional[TemplateLibrary] = None,
        max_input_chars: int = 4000,
    ):
        self.provider = provider
        self.state = state
        self.template_library = template_library
        self.max_input_chars = max_input_chars

    def _admit(self) -> None:
        """Raise RateLimitExceeded unless the limiter allows a call now."""
        if not self.state.rate_limiter.try_acquire():
            record_rate_limit_denial()
            raise RateLimitExceeded("Rate limit exceeded, using fallback analysis")

    async def _call(self, prompt: str, target: str) -> str:
        """Issue one provider call and commit the limiter once it answered.

        Must be called with ``state.admission_lock`` held.
        """
        start_time = time.monotonic()
        try:
            text = await self.provider.generate(prompt)
        except ParseError:
            # The provider answered; only its envelope was unusable
            self.state.rate_limiter.commit()
            record_inference(self.provider.name, target, False, time.monotonic() - start_time)
            raise
        except InferenceError:
            record_inference(self.provider.name, target, False, time.monotonic() - start_time)
            raise

        self.state.rate_limiter.commit()
        record_inference(self.provider.name, target, True, time.monotonic() - start_time)
        return text

    def _cached(self, cache, key: str) -> Optional[Any]:
        payload = cache.get(key)
        record_cache_lookup(cache.name, payload is not None)
        if payload is not None:
            logger.debug("cache_hit", extra={"cache": cache.name, "cache_key": key[:24]})
        return payload

    async def classify_fields(
        self,
        fields: Sequence[FieldDescriptor],
        context: Context,
        prior: Optional[Sequence[ClassificationResult]] = None,
    ) -> list[ClassificationResult]:
        """Classify a batch of fields remotely.

        Args:
            fields: Fields to classify, in page order
            context: Page context
            prior: Current result per field (default: unresolved)

        Returns:
            One result per field, in input order. Inference failures degrade
            to fallback results instead of raising.

        Raises:
            ValueError: If ``prior`` does not hold one result per field.
        """
        if not fields:
            return []

        prior = list(prior) if prior is not None else [UNRESOLVED] * len(fields)
        if len(prior) != len(fields):
            raise ValueError("prior must have one result per field")

        key = field_cache_key(fields, context)
        cached = self._cached(self.state.field_cache, key)
        if cached is not None:
            return list(cached)

        async with self.state.admission_lock:
            # A concurrent request may have filled the entry while we waited
            cached = self.state.field_cache.get(key)
            if cached is not None:
                return list(cached)

            try:
                self._admit()
                prompt = build_field_prompt(fields, context)
                text = await self._call(prompt, "field")
                analysis = extract_first_json(text, "array")
            except ParseError as e:
                record_fallback("field", "parse")
                logger.warning("field_analysis_parse_failed", extra={"error": str(e)})
                return list(prior)
            except InferenceError as e:
                record_fallback("field", _failure_reason(e))
                logger.warning(
                    "field_analysis_failed",
                    extra={
                        "provider": self.provider.name,
                        "status": e.status,
                        "error": e.message,
                        "error_type": type(e).__name__,
                    },
                )
                return field_fallback(prior)

            results = merge_field_results(prior, analysis)
            self.state.field_cache.put(key, tuple(results))

        logger.info(
            "field_analysis_complete",
            extra={
                "provider": self.provider.name,
                "field_count": len(fields),
                "llm_resolved": sum(1 for r in results if r.method == Method.LLM),
            },
        )
        return results

    def question_fallback(self, text: str) -> QuestionAnalysis:
        """Template-library match if one exists, else the generic analysis."""
        if self.template_library is not None:
            match = self.template_library.find_matching_template(text)
            if match is not None:
                return template_analysis(match)
        return generic_fallback_analysis()

    async def classify_question(self, text: str, context: Context) -> QuestionAnalysis:
        """Analyze one free-text question remotely. Never raises."""
        key = question_cache_key(text, context)
        cached = self._cached(self.state.question_cache, key)
        if cached is not None:
            return cached

        async with self.state.admission_lock:
            cached = self.state.question_cache.get(key)
            if cached is not None:
                return cached

            try:
                self._admit()
                prompt = build_question_prompt(text, context, self.max_input_chars)
                raw = await self._call(prompt, "question")
                analysis = parse_question_analysis(extract_first_json(raw, "object"))
            except ParseError as e:
                record_fallback("question", "parse")
                logger.warning("question_analysis_parse_failed", extra={"error": str(e)})
                return error_analysis()
            except InferenceError as e:
                record_fallback("question", _failure_reason(e))
                logger.warning(
                    "question_analysis_failed",
                    extra={
                        "provider": self.provider.name,
                        "status": e.status,
                        "error": e.message,
                        "error_type": type(e).__name__,
                    },
                )
                return self.question_fallback(text)

            self.state.question_cache.put(key, analysis)

        logger.info(
            "question_analysis_complete",
            extra={"category": analysis.category, "confidence": analysis.confidence},
        )
        return analysis
