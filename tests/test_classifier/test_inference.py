"""Tests for InferenceClient: cache, admission control, parsing and fallbacks.

The provider is a StubProvider returning scripted model text, so every test
runs without network access.
"""

import asyncio

import pytest
from classifier_test_helpers import field_response, question_response
from prometheus_client import REGISTRY

from autofill.classifier.config import FALLBACK_REASONING
from autofill.classifier.exceptions import ParseError, ProviderError, TransportError
from autofill.classifier.inference import (
    UNRESOLVED,
    InferenceClient,
    error_analysis,
    field_fallback,
    generic_fallback_analysis,
    merge_field_results,
    parse_question_analysis,
)
from autofill.classifier.templates import DefaultTemplateLibrary
from autofill.models import (
    AnalysisSource,
    ClassificationResult,
    Context,
    FieldDescriptor,
    FieldPurpose,
    Method,
    ResponseStructure,
    SuggestedLength,
)

FIELDS = [
    FieldDescriptor(kind="textarea", name="q1", label="Anything we missed?"),
    FieldDescriptor(kind="text", name="q2"),
]

CONTEXT = Context(url="https://example.com/apply", company="Acme", position="Engineer")


def _sample(name: str, labels: dict | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


@pytest.fixture
def client_for(state):
    """Factory: client_for(provider) -> InferenceClient sharing ``state``."""

    def _make(provider, templates=True, max_input_chars=4000):
        return InferenceClient(
            provider,
            state,
            template_library=DefaultTemplateLibrary() if templates else None,
            max_input_chars=max_input_chars,
        )

    return _make


class TestFieldFallback:
    def test_keeps_purpose_and_floors_confidence(self):
        prior = [
            ClassificationResult(FieldPurpose.EMAIL, 0.2, Method.HEURISTIC),
            ClassificationResult(FieldPurpose.CITY, 0.6, Method.HEURISTIC),
            UNRESOLVED,
        ]

        results = field_fallback(prior)

        assert [r.purpose for r in results] == [
            FieldPurpose.EMAIL,
            FieldPurpose.CITY,
            FieldPurpose.UNKNOWN,
        ]
        assert [r.confidence for r in results] == [0.3, 0.6, 0.0]
        assert all(r.method == Method.FALLBACK for r in results)
        assert all(r.reasoning == FALLBACK_REASONING for r in results)


class TestMergeFieldResults:
    """Test merging model output onto prior results by fieldIndex."""

    def test_merges_by_one_based_index(self):
        prior = [UNRESOLVED, UNRESOLVED]
        merged = merge_field_results(
            prior,
            [{"fieldIndex": 2, "purpose": "email", "confidence": 0.8, "reasoning": "r"}],
        )

        assert merged[0] is UNRESOLVED
        assert merged[1] == ClassificationResult(FieldPurpose.EMAIL, 0.8, Method.LLM, "r")

    def test_invalid_purpose_keeps_prior(self):
        merged = merge_field_results(
            [UNRESOLVED], [{"fieldIndex": 1, "purpose": "shoeSize", "confidence": 0.9}]
        )
        assert merged == [UNRESOLVED]

    @pytest.mark.parametrize(
        "raw,expected",
        [(1.7, 1.0), (-0.2, 0.0), ("0.4", 0.4), ("high", 0.0), (None, 0.0), (True, 0.0)],
    )
    def test_confidence_normalized(self, raw, expected):
        merged = merge_field_results(
            [UNRESOLVED], [{"fieldIndex": 1, "purpose": "email", "confidence": raw}]
        )
        assert merged[0].confidence == pytest.approx(expected)

    def test_missing_confidence(self):
        merged = merge_field_results([UNRESOLVED], [{"fieldIndex": 1, "purpose": "email"}])
        assert merged[0].confidence == 0.0

    @pytest.mark.parametrize("index", ["1", True, 1.0, 0, 3, None])
    def test_unusable_index_ignored(self, index):
        merged = merge_field_results(
            [UNRESOLVED, UNRESOLVED], [{"fieldIndex": index, "purpose": "email"}]
        )
        assert merged == [UNRESOLVED, UNRESOLVED]

    def test_first_entry_for_index_wins(self):
        merged = merge_field_results(
            [UNRESOLVED],
            [
                {"fieldIndex": 1, "purpose": "phone", "confidence": 0.5},
                {"fieldIndex": 1, "purpose": "email", "confidence": 0.9},
            ],
        )
        assert merged[0].purpose == FieldPurpose.PHONE

    def test_non_object_entries_skipped(self):
        merged = merge_field_results([UNRESOLVED], ["email", 3, None])
        assert merged == [UNRESOLVED]


class TestParseQuestionAnalysis:
    def test_full_payload(self):
        analysis = parse_question_analysis(
            {
                "category": "motivation",
                "questionType": "whyInterested",
                "keyPoints": ["mission", "growth"],
                "responseStructure": {"opening": "o", "body": "b", "closing": "c"},
                "advice": ["be specific"],
                "suggestedLength": "short",
                "confidence": 0.85,
            }
        )

        assert analysis.category == "motivation"
        assert analysis.question_type == "whyInterested"
        assert analysis.key_points == ("mission", "growth")
        assert analysis.response_structure == ResponseStructure("o", "b", "c")
        assert analysis.advice == ("be specific",)
        assert analysis.suggested_length == SuggestedLength.SHORT
        assert analysis.confidence == 0.85
        assert analysis.source == AnalysisSource.LLM

    def test_defaults(self):
        analysis = parse_question_analysis({"category": "teamwork"})

        assert analysis.question_type == "unknown"
        assert analysis.key_points == ()
        assert analysis.response_structure == ResponseStructure()
        assert analysis.suggested_length == SuggestedLength.MEDIUM
        assert analysis.confidence == 0.5

    def test_explicit_zero_confidence_kept(self):
        assert parse_question_analysis({"confidence": 0}).confidence == 0.0

    def test_unknown_length_and_bad_confidence(self):
        analysis = parse_question_analysis({"suggestedLength": "huge", "confidence": "sure"})
        assert analysis.category == "unknown"
        assert analysis.suggested_length == SuggestedLength.MEDIUM
        assert analysis.confidence == 0.5


class TestClassifyFields:
    """Test the remote field path."""

    @pytest.mark.asyncio
    async def test_success_merges_and_caches(self, client_for, stub_provider, state):
        provider = stub_provider(
            field_response(
                {"fieldIndex": 1, "purpose": "additionalInfo", "confidence": 0.6, "reasoning": "free text"}
            )
        )
        client = client_for(provider)

        results = await client.classify_fields(FIELDS, CONTEXT)

        assert results[0] == ClassificationResult(
            FieldPurpose.ADDITIONAL_INFO, 0.6, Method.LLM, "free text"
        )
        assert results[1] == UNRESOLVED
        assert state.rate_limiter.state.daily_count == 1
        assert "Field 1:" in provider.prompts[0]
        assert "Field 2:" in provider.prompts[0]

        # Served from cache: no second provider call, no quota
        again = await client.classify_fields(FIELDS, CONTEXT)
        assert again == results
        assert provider.call_count == 1
        assert state.rate_limiter.state.daily_count == 1

    @pytest.mark.asyncio
    async def test_cache_hit_ignores_rate_limit(self, client_for, stub_provider, state):
        client = client_for(stub_provider(field_response({"fieldIndex": 1, "purpose": "email"})))
        await client.classify_fields(FIELDS, CONTEXT)

        state.rate_limiter.state.daily_count = state.rate_limiter.requests_per_day

        results = await client.classify_fields(FIELDS, CONTEXT)
        assert results[0].method == Method.LLM

    @pytest.mark.asyncio
    async def test_empty_batch(self, client_for, stub_provider):
        provider = stub_provider()
        assert await client_for(provider).classify_fields([], CONTEXT) == []
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_prior_length_mismatch(self, client_for, stub_provider):
        with pytest.raises(ValueError):
            await client_for(stub_provider()).classify_fields(FIELDS, CONTEXT, prior=[UNRESOLVED])

    @pytest.mark.asyncio
    async def test_rate_limited_returns_fallback(self, client_for, stub_provider, state):
        provider = stub_provider(field_response())
        client = client_for(provider)
        await client.classify_fields(FIELDS[:1], CONTEXT)
        denials = _sample("autofill_rate_limit_denials_total")

        prior = [ClassificationResult(FieldPurpose.EMAIL, 0.2, Method.HEURISTIC), UNRESOLVED]
        results = await client.classify_fields(FIELDS, CONTEXT, prior=prior)

        assert provider.call_count == 1
        assert results == field_fallback(prior)
        assert _sample("autofill_rate_limit_denials_total") == denials + 1

    @pytest.mark.asyncio
    async def test_transport_error_does_not_consume_quota(self, client_for, stub_provider, state):
        client = client_for(stub_provider(TransportError("connection refused")))
        before = _sample("autofill_fallbacks_total", {"target": "field", "reason": "transport"})

        results = await client.classify_fields(FIELDS, CONTEXT)

        assert results == field_fallback([UNRESOLVED, UNRESOLVED])
        assert state.rate_limiter.state.daily_count == 0
        assert len(state.field_cache) == 0
        assert _sample("autofill_fallbacks_total", {"target": "field", "reason": "transport"}) == before + 1

    @pytest.mark.asyncio
    async def test_provider_error_returns_fallback(self, client_for, stub_provider, state):
        client = client_for(stub_provider(ProviderError("quota exhausted", status=429)))

        results = await client.classify_fields(FIELDS, CONTEXT)

        assert all(r.method == Method.FALLBACK for r in results)
        assert state.rate_limiter.state.daily_count == 0

    @pytest.mark.asyncio
    async def test_unparseable_text_returns_prior(self, client_for, stub_provider, state):
        client = client_for(stub_provider("Sorry, I can't help with that."))
        prior = [ClassificationResult(FieldPurpose.EMAIL, 0.2, Method.HEURISTIC), UNRESOLVED]

        results = await client.classify_fields(FIELDS, CONTEXT, prior=prior)

        assert results == prior
        assert state.rate_limiter.state.daily_count == 1
        assert len(state.field_cache) == 0

    @pytest.mark.asyncio
    async def test_bad_envelope_consumes_quota(self, client_for, stub_provider, state):
        client = client_for(stub_provider(ParseError("No content in response")))

        results = await client.classify_fields(FIELDS, CONTEXT)

        assert results == [UNRESOLVED, UNRESOLVED]
        assert state.rate_limiter.state.daily_count == 1

    @pytest.mark.asyncio
    async def test_transport_failure_allows_immediate_retry(self, client_for, stub_provider):
        provider = stub_provider(
            TransportError("reset"),
            field_response({"fieldIndex": 2, "purpose": "phone", "confidence": 0.7}),
        )
        client = client_for(provider)

        first = await client.classify_fields(FIELDS, CONTEXT)
        second = await client.classify_fields(FIELDS, CONTEXT)

        assert first[1].method == Method.FALLBACK
        assert second[1].purpose == FieldPurpose.PHONE
        assert provider.call_count == 2


class TestClassifyQuestion:
    """Test the remote question path."""

    @pytest.mark.asyncio
    async def test_success_and_cache(self, client_for, stub_provider, state):
        provider = stub_provider(
            question_response(
                category="motivation",
                questionType="whyCompany",
                keyPoints=["mission"],
                advice=["Be concrete"],
                suggestedLength="short",
                confidence=0.85,
            )
        )
        client = client_for(provider)

        analysis = await client.classify_question("What draws you to Acme?", CONTEXT)

        assert analysis.category == "motivation"
        assert analysis.source == AnalysisSource.LLM
        assert analysis.confidence == 0.85
        assert '"What draws you to Acme?"' in provider.prompts[0]

        assert await client.classify_question("What draws you to Acme?", CONTEXT) is analysis
        assert provider.call_count == 1
        assert state.rate_limiter.state.daily_count == 1

    @pytest.mark.asyncio
    async def test_cache_is_per_position(self, client_for, stub_provider, clock):
        provider = stub_provider(question_response(category="a"), question_response(category="b"))
        client = client_for(provider)

        first = await client.classify_question("What draws you here?", CONTEXT)
        clock.advance(1)
        other = Context(company="Acme", position="Designer")
        second = await client.classify_question("What draws you here?", other)

        assert (first.category, second.category) == ("a", "b")

    @pytest.mark.asyncio
    async def test_unparseable_text_is_error_analysis(self, client_for, stub_provider, state):
        client = client_for(stub_provider("I'd rather not."))

        analysis = await client.classify_question("Why are you interested in this position?", CONTEXT)

        assert analysis == error_analysis()
        assert analysis.advice == ("Unable to analyze question automatically",)
        assert state.rate_limiter.state.daily_count == 1
        assert len(state.question_cache) == 0

    @pytest.mark.asyncio
    async def test_rate_limited_uses_template(self, client_for, stub_provider):
        provider = stub_provider(question_response(category="x"))
        client = client_for(provider)
        await client.classify_question("Describe your hobbies", CONTEXT)

        analysis = await client.classify_question("Why are you interested in this position?", CONTEXT)

        assert provider.call_count == 1
        assert analysis.source == AnalysisSource.TEMPLATE_FALLBACK
        assert analysis.category == "motivation"
        assert analysis.question_type == "whyInterested"
        assert analysis.confidence == 0.9
        assert analysis.key_points == ("Matches template: whyInterested",)

    @pytest.mark.asyncio
    async def test_provider_error_without_template(self, client_for, stub_provider):
        client = client_for(stub_provider(ProviderError("bad key", status=403)))

        analysis = await client.classify_question("Please list your references", CONTEXT)

        assert analysis == generic_fallback_analysis()
        assert analysis.source == AnalysisSource.FALLBACK
        assert analysis.confidence == 0.0

    @pytest.mark.asyncio
    async def test_no_template_library(self, client_for, stub_provider):
        client = client_for(stub_provider(TransportError("down")), templates=False)

        analysis = await client.classify_question("Why are you interested in this position?", CONTEXT)

        assert analysis == generic_fallback_analysis()

    @pytest.mark.asyncio
    async def test_question_truncated_in_prompt(self, client_for, stub_provider):
        provider = stub_provider(question_response(category="long"))
        client = client_for(provider, max_input_chars=100)

        await client.classify_question("y" * 500, CONTEXT)

        assert "y" * 100 in provider.prompts[0]
        assert "y" * 101 not in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_concurrent_identical_questions_share_one_call(self, client_for, stub_provider):
        provider = stub_provider(question_response(category="teamwork"))
        client = client_for(provider)

        first, second = await asyncio.gather(
            client.classify_question("Tell us about your team", CONTEXT),
            client.classify_question("Tell us about your team", CONTEXT),
        )

        assert provider.call_count == 1
        assert first == second

    @pytest.mark.asyncio
    async def test_concurrent_distinct_questions_admit_one(self, client_for, stub_provider, state):
        provider = stub_provider(question_response(category="first"))
        client = client_for(provider, templates=False)

        results = await asyncio.gather(
            client.classify_question("Describe your hobbies", CONTEXT),
            client.classify_question("List your references", CONTEXT),
        )

        assert provider.call_count == 1
        assert state.rate_limiter.state.daily_count == 1
        assert sorted(r.source.value for r in results) == ["fallback", "llm"]


class TestUnencodableText:
    """Lone surrogates in scraped text reach the provider as valid UTF-8."""

    @pytest.mark.asyncio
    async def test_field_batch(self, client_for, stub_provider):
        provider = stub_provider(field_response({"fieldIndex": 1, "purpose": "additionalInfo"}))
        client = client_for(provider)
        fields = [FieldDescriptor(kind="textarea", name="q\ud800", label="Pick \udcff one")]

        results = await client.classify_fields(fields, CONTEXT)

        assert results[0].purpose == FieldPurpose.ADDITIONAL_INFO
        assert results[0].method == Method.LLM
        provider.prompts[0].encode("utf-8")
        assert "Pick ? one" in provider.prompts[0]

    @pytest.mark.asyncio
    async def test_question(self, client_for, stub_provider):
        provider = stub_provider(question_response(category="preferences", confidence=0.7))
        client = client_for(provider, templates=False)

        analysis = await client.classify_question("Describe \udcff your favourite colour", CONTEXT)

        assert analysis.source == AnalysisSource.LLM
        assert analysis.category == "preferences"
        provider.prompts[0].encode("utf-8")
        assert "Describe ? your favourite colour" in provider.prompts[0]
