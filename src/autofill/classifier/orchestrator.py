"""End-to-end classification chains.

Fields: rules -> heuristics -> patterns -> one batched inference call for
whatever is still unresolved.

Questions: patterns -> fuzzy keywords -> template lookup -> inference.

Each chain stops at the first stage that yields a result, and nothing is
raised to the caller.
"""

import logging
from typing import Optional, Sequence

from ..config import AutofillConfig, get_config
from ..models import (
    AnalysisSource,
    ClassificationResult,
    Context,
    FieldDescriptor,
    Method,
    PlatformType,
    QuestionAnalysis,
)
from ..platforms import detect_platform
from ..storage import KeyValueStore, resolve_api_key
from .config import ATS_CONFIDENCE, PATTERN_CONFIDENCE
from .fuzzy import fuzzy_match
from .heuristics import score_by_heuristics
from .inference import UNRESOLVED, InferenceClient, template_analysis
from .metrics import record_resolution
from .patterns import match_field_by_pattern, match_question_by_pattern
from .providers import BaseProvider, GeminiProvider, OllamaProvider
from .rules import match_by_rules
from .state import PipelineState
from .templates import DefaultTemplateLibrary, TemplateLibrary

logger = logging.getLogger("autofill.classifier.orchestrator")

__all__ = [
    "ClassificationOrchestrator",
    "PipelineState",
    "build_provider",
]


async def build_provider(
    config: Optional[AutofillConfig] = None,
    store: Optional[KeyValueStore] = None,
) -> BaseProvider:
    """Build the configured provider.

    The Gemini API key stored by the user in ``store`` takes precedence over
    the configured default.
    """
    config = config or get_config()

    provider_map = {
        "gemini": GeminiProvider,
        "ollama": OllamaProvider,
    }
    provider_cls = provider_map[config.provider]

    common = {
        "timeout": config.timeout_seconds,
        "temperature": config.temperature,
        "max_output_tokens": config.max_output_tokens,
    }

    if provider_cls is GeminiProvider:
        api_key = await resolve_api_key(store, config.gemini_api_key.get_secret_value())
        provider = GeminiProvider(
            api_key=api_key,
            base_url=config.gemini_base_url,
            model=config.gemini_model,
            **common,
        )
    else:
        provider = OllamaProvider(
            base_url=config.ollama_base_url,
            model=config.ollama_model,
            **common,
        )

    logger.info(
        "provider_built",
        extra={"provider": provider.name, "model": provider.model},
    )
    return provider


class ClassificationOrchestrator:
    """Runs the field and question chains against shared pipeline state.

    Example:
        >>> state = PipelineState.from_config()
        >>> orchestrator = ClassificationOrchestrator(await build_provider(), state)
        >>> results = await orchestrator.classify_fields(fields, context)
    """

    def __init__(
        self,
        provider: BaseProvider,
        state: Optional[PipelineState] = None,
        template_library: Optional[TemplateLibrary] = None,
        config: Optional[AutofillConfig] = None,
    ):
        """Initialize orchestrator.

        Args:
            provider: Remote inference provider
            state: Shared caches and rate limiter (default: fresh from config)
            template_library: Question template source (default: built-in templates)
            config: Configuration (default: global singleton)
        """
        config = config or get_config()
        self.state = state or PipelineState.from_config(config)
        self.template_library = (
            template_library if template_library is not None else DefaultTemplateLibrary()
        )
        # Templates are consulted before inference, so failures go straight
        # to the generic analysis
        self.inference = InferenceClient(
            provider,
            self.state,
            max_input_chars=config.max_input_chars,
        )

    # -------------------------------------------------------------------------
    # Fields
    # -------------------------------------------------------------------------

    def classify_locally(
        self, field: FieldDescriptor, platform_type: PlatformType
    ) -> Optional[ClassificationResult]:
        """Run the rule, heuristic and pattern stages for one field.

        Returns:
            The first stage's result, or None if every stage missed.
        """
        purpose = match_by_rules(field, platform_type)
        if purpose is not None:
            return ClassificationResult(
                purpose=purpose,
                confidence=ATS_CONFIDENCE,
                method=Method.ATS_SPECIFIC,
                reasoning=f"Matched {platform_type.value} field rule",
            )

        scored = score_by_heuristics(field)
        if scored is not None:
            purpose, confidence = scored
            return ClassificationResult(
                purpose=purpose,
                confidence=confidence,
                method=Method.HEURISTIC,
                reasoning="Matched field keywords",
            )

        purpose = match_field_by_pattern(field)
        if purpose is not None:
            return ClassificationResult(
                purpose=purpose,
                confidence=PATTERN_CONFIDENCE,
                method=Method.PATTERN,
                reasoning="Matched question pattern",
            )

        return None

    async def classify_fields(
        self, fields: Sequence[FieldDescriptor], context: Context
    ) -> list[ClassificationResult]:
        """Classify a batch of fields.

        Args:
            fields: Field descriptors in page order
            context: Page context; an unknown platform is inferred from the URL

        Returns:
            One result per field, in input order.
        """
        platform_type = context.platform_type
        if platform_type == PlatformType.UNKNOWN and context.url:
            platform_type = detect_platform(context.url)

        results: list[Optional[ClassificationResult]] = []
        for field in fields:
            result = self.classify_locally(field, platform_type)
            if result is not None:
                record_resolution("field", result.method.value, result.confidence)
            results.append(result)

        pending = [i for i, r in enumerate(results) if r is None]

        logger.info(
            "fields_classified_locally",
            extra={
                "platform": platform_type.value,
                "field_count": len(fields),
                "unresolved": len(pending),
            },
        )

        if pending:
            inferred = await self.inference.classify_fields(
                [fields[i] for i in pending],
                context,
                prior=[UNRESOLVED] * len(pending),
            )
            for i, result in zip(pending, inferred):
                record_resolution("field", result.method.value, result.confidence)
                results[i] = result

        return results

    # -------------------------------------------------------------------------
    # Questions
    # -------------------------------------------------------------------------

    async def classify_question(self, text: str, context: Context) -> QuestionAnalysis:
        """Analyze one free-text application question.

        Returns:
            The analysis from the first stage that produced one.
        """
        analysis = self._classify_question_locally(text)
        if analysis is None:
            analysis = await self.inference.classify_question(text, context)

        record_resolution("question", analysis.source.value, analysis.confidence)
        logger.info(
            "question_classified",
            extra={
                "category": analysis.category,
                "source": analysis.source.value,
                "confidence": analysis.confidence,
            },
        )
        return analysis

    def _classify_question_locally(self, text: str) -> Optional[QuestionAnalysis]:
        category = match_question_by_pattern(text)
        if category is not None:
            return QuestionAnalysis(
                category=category,
                question_type=category,
                confidence=PATTERN_CONFIDENCE,
                source=AnalysisSource.PATTERN,
            )

        fuzzy = fuzzy_match(text)
        if fuzzy is not None:
            category, confidence = fuzzy
            return QuestionAnalysis(
                category=category,
                question_type=category,
                confidence=confidence,
                source=AnalysisSource.FUZZY,
            )

        match = self.template_library.find_matching_template(text)
        if match is not None:
            return template_analysis(match)

        return None

    # -------------------------------------------------------------------------
    # Housekeeping
    # -------------------------------------------------------------------------

    def usage_stats(self) -> dict:
        return self.state.usage_stats()

    def clear_cache(self) -> None:
        self.state.clear_caches()

    async def aclose(self) -> None:
        await self.inference.provider.aclose()
