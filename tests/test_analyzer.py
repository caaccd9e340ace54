"""Tests for QueryAnalyzer rule table and model fallback."""

import pytest

from conftest import MockLLMProvider
from hybrid_rag.exceptions import LLMError
from hybrid_rag.orchestration.analyzer import (
    ANALYSIS_RULES,
    AnalysisRule,
    QueryAnalyzer,
    assess_complexity,
    extract_entities,
    extract_temporal_context,
    is_comparative,
    is_personal,
    is_temporal,
    is_vague,
    map_strategy,
)
from hybrid_rag.types import (
    Complexity,
    FusionMethod,
    Intent,
    QueryAnalysis,
    QueryType,
)


# =============================================================================
# Individual rules
# =============================================================================


class TestRulePredicates:
    """Each rule predicate in isolation (inputs are lower-cased)."""

    @pytest.mark.parametrize(
        "query",
        ["what did i say about my preferences", "i prefer tabs", "remember my dog's name"],
    )
    def test_personal_phrases(self, query):
        assert is_personal(query)

    @pytest.mark.parametrize("query", ["when is the election", "latest rust release", "news today"])
    def test_temporal_phrases(self, query):
        assert is_temporal(query)

    @pytest.mark.parametrize("query", ["react vs vue", "compare postgres and mysql", "which is better"])
    def test_comparative_phrases(self, query):
        assert is_comparative(query)

    def test_vague_two_terms(self):
        assert is_vague("how about that approach we discussed")

    def test_vague_short_text(self):
        assert is_vague("hmm ok")

    def test_not_vague(self):
        assert not is_vague("what is react?")

    def test_rule_order(self):
        """Rules are evaluated personal, temporal, comparative, vague, factual."""
        assert [r.name for r in ANALYSIS_RULES] == [
            "personal",
            "temporal",
            "comparative",
            "vague",
            "factual",
        ]


class TestHelpers:
    """Tests for entity, temporal and complexity helpers."""

    def test_extract_entities(self):
        """Capitalized words longer than three characters."""
        assert extract_entities("Compare React and Angular for SPA work") == [
            "Compare",
            "React",
            "Angular",
        ]

    @pytest.mark.parametrize(
        "query,tag",
        [
            ("what happened today", "today"),
            ("news from yesterday", "yesterday"),
            ("releases last week", "last_week"),
            ("sales last month", "last_month"),
            ("goals this year", "this_year"),
        ],
    )
    def test_relative_time(self, query, tag):
        ctx = extract_temporal_context(query)
        assert ctx.has_date is True
        assert ctx.relative_time == tag

    @pytest.mark.parametrize("query", ["events on 2024-05-01", "events on 05/01/2024"])
    def test_explicit_date(self, query):
        ctx = extract_temporal_context(query)
        assert ctx.has_date is True
        assert ctx.relative_time is None

    def test_no_temporal_context(self):
        assert extract_temporal_context("when is lunch") is None

    def test_complexity_simple(self):
        assert assess_complexity("What is React?") == Complexity.SIMPLE

    def test_complexity_complex_by_question_words(self):
        assert assess_complexity("what and why and how does it work") == Complexity.COMPLEX

    def test_complexity_complex_by_length(self):
        query = " ".join(["word"] * 16)
        assert assess_complexity(query) == Complexity.COMPLEX

    def test_complexity_medium(self):
        assert assess_complexity("explain the event loop in node please") == Complexity.MEDIUM

    def test_map_strategy(self):
        assert map_strategy(Intent.PERSONAL, Complexity.SIMPLE) == FusionMethod.MEMORY_PRIORITY
        assert map_strategy(Intent.TEMPORAL, Complexity.MEDIUM) == FusionMethod.RECENCY_WEIGHTED
        assert map_strategy(Intent.COMPARATIVE, Complexity.COMPLEX) == FusionMethod.COMPREHENSIVE
        assert map_strategy(Intent.FACTUAL, Complexity.COMPLEX) == FusionMethod.AGENTIC_SYNTHESIS
        assert map_strategy(Intent.CONCEPTUAL, Complexity.MEDIUM) == FusionMethod.WEIGHTED


# =============================================================================
# Analyzer
# =============================================================================


class TestQueryAnalyzer:
    """Tests for QueryAnalyzer.analyze."""

    @pytest.mark.asyncio
    async def test_personal_fast_path(self):
        """Personal phrases short-circuit without a model call."""
        llm = MockLLMProvider()
        analyzer = QueryAnalyzer(llm)

        analysis = await analyzer.analyze("what did i say about my preferences")

        assert analysis.intent == Intent.PERSONAL
        assert analysis.confidence == 0.9
        assert analysis.query_type == QueryType.PERSONAL
        assert analysis.requires_personal_context is True
        assert analysis.suggested_strategy == FusionMethod.MEMORY_PRIORITY
        assert llm.call_count == 0

    @pytest.mark.asyncio
    async def test_temporal_fast_path(self):
        llm = MockLLMProvider()
        analysis = await QueryAnalyzer(llm).analyze("latest news today")

        assert analysis.intent == Intent.TEMPORAL
        assert analysis.temporal_context.relative_time == "today"
        assert analysis.requires_current_info is True
        assert llm.call_count == 0

    @pytest.mark.asyncio
    async def test_temporal_context_disabled(self):
        analysis = await QueryAnalyzer(temporal_context=False).analyze("latest news today")

        assert analysis.intent == Intent.TEMPORAL
        assert analysis.temporal_context is None

    @pytest.mark.asyncio
    async def test_comparative_fast_path(self):
        llm = MockLLMProvider()
        analysis = await QueryAnalyzer(llm).analyze("react vs vue vs angular")

        assert analysis.intent == Intent.COMPARATIVE
        assert analysis.confidence == 0.85
        assert analysis.complexity == Complexity.COMPLEX
        assert llm.call_count == 0

    @pytest.mark.asyncio
    async def test_factual_rules_only(self):
        """Without a model the rule result is returned as is."""
        analysis = await QueryAnalyzer().analyze("What is React?")

        assert analysis.intent == Intent.FACTUAL
        assert analysis.query_type == QueryType.FACTUAL
        assert analysis.complexity == Complexity.SIMPLE
        assert analysis.confidence == 0.7
        assert analysis.entities == ["What", "React?"]

    @pytest.mark.asyncio
    async def test_factual_consults_model(self):
        """Low-confidence rule results are refined by the model."""
        llm = MockLLMProvider(responses=[{"intent": "factual", "complexity": "medium"}])
        analysis = await QueryAnalyzer(llm).analyze("What is React?")

        assert llm.call_count == 1
        assert analysis.intent == Intent.FACTUAL
        assert analysis.complexity == Complexity.MEDIUM
        assert analysis.confidence == 0.8
        assert analysis.suggested_strategy == FusionMethod.WEIGHTED

    @pytest.mark.asyncio
    async def test_model_merge_overrides_fields(self):
        llm = MockLLMProvider(
            responses=[
                {
                    "intent": "conceptual",
                    "complexity": "complex",
                    "requiresPersonalContext": True,
                    "requiresCurrentInfo": False,
                    "requiresVerification": False,
                }
            ]
        )
        analysis = await QueryAnalyzer(llm).analyze("explain dependency injection in depth")

        assert analysis.intent == Intent.CONCEPTUAL
        assert analysis.query_type == QueryType.CONCEPTUAL
        assert analysis.complexity == Complexity.COMPLEX
        assert analysis.requires_personal_context is True
        assert analysis.requires_current_info is False
        assert analysis.requires_verification is False
        assert analysis.suggested_strategy == FusionMethod.AGENTIC_SYNTHESIS

    @pytest.mark.asyncio
    async def test_model_invalid_values_keep_rule_values(self):
        llm = MockLLMProvider(responses=[{"intent": "gossip", "complexity": 7}])
        analysis = await QueryAnalyzer(llm).analyze("explain dependency injection please")

        assert analysis.intent == Intent.FACTUAL
        assert analysis.query_type == QueryType.FACTUAL
        assert analysis.complexity == Complexity.MEDIUM

    @pytest.mark.asyncio
    async def test_model_failure_returns_rule_result(self):
        """A model error leaves the rule-based result unmodified."""
        analyzer = QueryAnalyzer(MockLLMProvider(error=LLMError("rate limited")))
        rule_name, expected = analyzer.quick_analyze("What is React?")

        analysis = await analyzer.analyze("What is React?")

        assert rule_name == "factual"
        assert analysis == expected

    @pytest.mark.asyncio
    async def test_unparseable_model_reply_returns_rule_result(self):
        analyzer = QueryAnalyzer(MockLLMProvider(responses=["I think it is factual"]))
        analysis = await analyzer.analyze("What is React?")

        assert analysis.confidence == 0.7
        assert analysis.intent == Intent.FACTUAL

    @pytest.mark.asyncio
    async def test_vague_query(self):
        analysis = await QueryAnalyzer().analyze("how about that thing")

        assert analysis.query_type == QueryType.VAGUE
        assert analysis.intent == Intent.PERSONAL
        assert analysis.complexity == Complexity.COMPLEX
        assert analysis.suggested_strategy == FusionMethod.AGENTIC_SYNTHESIS

    @pytest.mark.asyncio
    async def test_never_raises(self):
        """A broken rule falls back to the default analysis."""

        def explode(query: str) -> bool:
            raise RuntimeError("boom")

        analyzer = QueryAnalyzer(rules=(AnalysisRule("broken", explode, lambda q, t: None),))
        analysis = await analyzer.analyze("anything")

        assert analysis == QueryAnalysis.default()
        assert analysis.intent == Intent.FACTUAL
        assert analysis.complexity == Complexity.MEDIUM
        assert analysis.requires_current_info is True
        assert analysis.requires_verification is True
        assert analysis.confidence == 0.5
