"""Query analysis: intent, complexity and retrieval requirements.

Fast deterministic rules run first. Only when the winning rule is not
confident enough is the completion model consulted, and its answer is
merged over the rule result. Nothing here raises to the caller.
"""

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Callable

from hybrid_rag.llm.base import LLMProvider
from hybrid_rag.types import (
    Complexity,
    FusionMethod,
    Intent,
    QueryAnalysis,
    QueryContext,
    QueryType,
    TemporalContext,
)

logger = logging.getLogger(__name__)

# Rule results above this confidence skip the model call
FAST_PATH_CONFIDENCE = 0.8
MODEL_CONFIDENCE = 0.8

PERSONAL_PHRASES = ("what did i", "what did we", "my preference", "i prefer", "i like", "remember")
TEMPORAL_PHRASES = ("when", "date", "recent", "latest", "current", "today", "yesterday", "week ago")
COMPARATIVE_PHRASES = ("vs", "versus", "compare", "difference", "better", "best", "which")
VAGUE_TERMS = ("that", "thing", "stuff", "what", "how")
QUESTION_WORDS = ("what", "when", "where", "why", "how", "which", "who")

RELATIVE_TIMES = (
    ("today", "today"),
    ("yesterday", "yesterday"),
    ("last week", "last_week"),
    ("last month", "last_month"),
    ("this year", "this_year"),
)
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}|\d{2}/\d{2}/\d{4}")


# =============================================================================
# Rule helpers
# =============================================================================


def extract_entities(query: str) -> list[str]:
    """Capitalized words longer than three characters, in order."""
    return [w for w in query.split() if len(w) > 3 and w[0].isupper()]


def extract_temporal_context(lower_query: str) -> TemporalContext | None:
    for phrase, tag in RELATIVE_TIMES:
        if phrase in lower_query:
            return TemporalContext(has_date=True, relative_time=tag)
    if DATE_PATTERN.search(lower_query):
        return TemporalContext(has_date=True)
    return None


def count_question_words(lower_query: str) -> int:
    return sum(1 for w in QUESTION_WORDS if w in lower_query)


def assess_complexity(query: str) -> Complexity:
    word_count = len(query.split())
    question_words = count_question_words(query.lower())
    if word_count < 5 and question_words == 1:
        return Complexity.SIMPLE
    if question_words > 2 or word_count > 15:
        return Complexity.COMPLEX
    return Complexity.MEDIUM


def is_personal(q: str) -> bool:
    return any(p in q for p in PERSONAL_PHRASES)


def is_temporal(q: str) -> bool:
    return any(p in q for p in TEMPORAL_PHRASES)


def is_comparative(q: str) -> bool:
    return any(p in q for p in COMPARATIVE_PHRASES)


def is_vague(q: str) -> bool:
    return sum(1 for t in VAGUE_TERMS if t in q) >= 2 or len(q) < 10


def map_strategy(intent: Intent, complexity: Complexity) -> FusionMethod:
    """Suggested fusion label for a model-assisted analysis."""
    if intent == Intent.PERSONAL:
        return FusionMethod.MEMORY_PRIORITY
    if intent == Intent.TEMPORAL:
        return FusionMethod.RECENCY_WEIGHTED
    if intent == Intent.COMPARATIVE:
        return FusionMethod.COMPREHENSIVE
    if complexity == Complexity.COMPLEX:
        return FusionMethod.AGENTIC_SYNTHESIS
    return FusionMethod.WEIGHTED


# =============================================================================
# Rule table
# =============================================================================


@dataclass(frozen=True)
class AnalysisRule:
    """One (predicate, result) pair. Predicates see the lower-cased query."""

    name: str
    matches: Callable[[str], bool]
    build: Callable[[str, bool], QueryAnalysis]


def _personal(query: str, with_temporal: bool) -> QueryAnalysis:
    return QueryAnalysis(
        intent=Intent.PERSONAL,
        intent_confidence=0.9,
        entities=extract_entities(query),
        complexity=Complexity.SIMPLE,
        query_type=QueryType.PERSONAL,
        requires_personal_context=True,
        requires_current_info=False,
        requires_verification=False,
        confidence=0.9,
        suggested_strategy=FusionMethod.MEMORY_PRIORITY,
    )


def _temporal(query: str, with_temporal: bool) -> QueryAnalysis:
    return QueryAnalysis(
        intent=Intent.TEMPORAL,
        intent_confidence=0.9,
        entities=extract_entities(query),
        temporal_context=extract_temporal_context(query.lower()) if with_temporal else None,
        complexity=Complexity.MEDIUM,
        query_type=QueryType.TEMPORAL,
        requires_personal_context=False,
        requires_current_info=True,
        requires_verification=True,
        confidence=0.9,
        suggested_strategy=FusionMethod.RECENCY_WEIGHTED,
    )


def _comparative(query: str, with_temporal: bool) -> QueryAnalysis:
    return QueryAnalysis(
        intent=Intent.COMPARATIVE,
        intent_confidence=0.85,
        entities=extract_entities(query),
        complexity=Complexity.COMPLEX,
        query_type=QueryType.COMPARATIVE,
        requires_personal_context=False,
        requires_current_info=True,
        requires_verification=True,
        confidence=0.85,
        suggested_strategy=FusionMethod.COMPREHENSIVE,
    )


def _vague(query: str, with_temporal: bool) -> QueryAnalysis:
    # Vague queries most often refer back to something the user said
    return QueryAnalysis(
        intent=Intent.PERSONAL,
        intent_confidence=0.6,
        entities=extract_entities(query),
        complexity=Complexity.COMPLEX,
        query_type=QueryType.VAGUE,
        requires_personal_context=True,
        requires_current_info=False,
        requires_verification=False,
        confidence=0.6,
        suggested_strategy=FusionMethod.AGENTIC_SYNTHESIS,
    )


def _factual(query: str, with_temporal: bool) -> QueryAnalysis:
    return QueryAnalysis(
        intent=Intent.FACTUAL,
        intent_confidence=0.7,
        entities=extract_entities(query),
        complexity=assess_complexity(query),
        query_type=QueryType.FACTUAL,
        requires_personal_context=False,
        requires_current_info=True,
        requires_verification=True,
        confidence=0.7,
        suggested_strategy=FusionMethod.WEIGHTED,
    )


ANALYSIS_RULES: tuple[AnalysisRule, ...] = (
    AnalysisRule("personal", is_personal, _personal),
    AnalysisRule("temporal", is_temporal, _temporal),
    AnalysisRule("comparative", is_comparative, _comparative),
    AnalysisRule("vague", is_vague, _vague),
    AnalysisRule("factual", lambda q: True, _factual),
)


# =============================================================================
# Analyzer
# =============================================================================


class QueryAnalyzer:
    """Classifies queries for strategy planning.

    Usage:
        analyzer = QueryAnalyzer(llm=groq_llm)
        analysis = await analyzer.analyze("What is React?")
    """

    SYSTEM_PROMPT = (
        "Analyze this query and determine: intent (personal/factual/conceptual/"
        "comparative/temporal), complexity (simple/medium/complex), and requirements."
    )

    USER_PROMPT = (
        'Query: "{query}"\n\n'
        "Return JSON with: intent, complexity, requiresPersonalContext (bool), "
        "requiresCurrentInfo (bool), requiresVerification (bool)"
    )

    def __init__(
        self,
        llm: LLMProvider | None = None,
        temporal_context: bool = True,
        rules: tuple[AnalysisRule, ...] = ANALYSIS_RULES,
    ):
        """Initialize analyzer.

        Args:
            llm: Completion model for low-confidence queries. If None, rules only.
            temporal_context: Extract relative-time and date context for
                temporal queries
            rules: Ordered rule table; the first match wins
        """
        self.llm = llm
        self.temporal_context = temporal_context
        self.rules = rules

    def quick_analyze(self, query: str) -> tuple[str, QueryAnalysis]:
        """Apply the rule table. Returns (rule name, analysis)."""
        lower_query = query.lower()
        for rule in self.rules:
            if rule.matches(lower_query):
                return rule.name, rule.build(query, self.temporal_context)
        return "factual", _factual(query, self.temporal_context)

    async def analyze(self, query: str, context: QueryContext | None = None) -> QueryAnalysis:
        """Analyze a query. Never raises."""
        try:
            rule_name, quick = self.quick_analyze(query)
            if quick.confidence > FAST_PATH_CONFIDENCE or self.llm is None:
                logger.debug(f"Quick analysis matched {rule_name} rule")
                return quick
            return await self._llm_analyze(query, quick)
        except Exception as e:
            logger.warning(f"Query analysis failed, using default: {e}")
            return QueryAnalysis.default()

    async def _llm_analyze(self, query: str, fallback: QueryAnalysis) -> QueryAnalysis:
        try:
            result = await self.llm.chat_json(
                messages=[{"role": "user", "content": self.USER_PROMPT.format(query=query)}],
                system_prompt=self.SYSTEM_PROMPT,
                temperature=0.3,
            )
        except Exception as e:
            logger.warning(f"LLM analysis failed, using rule result: {e}")
            return fallback

        parsed = result.get("parsed")
        if not isinstance(parsed, dict):
            logger.warning("LLM analysis returned no JSON object, using rule result")
            return fallback

        merged = merge_model_analysis(fallback, parsed)
        logger.debug(f"Model analysis: intent={merged.intent.value}, complexity={merged.complexity.value}")
        return merged


def _enum_or(enum_cls: type, raw: Any, default: Any) -> Any:
    if isinstance(raw, str):
        try:
            return enum_cls(raw.strip().lower())
        except ValueError:
            pass
    return default


def _bool_or(raw: Any, default: bool) -> bool:
    return raw if isinstance(raw, bool) else default


def merge_model_analysis(fallback: QueryAnalysis, parsed: dict[str, Any]) -> QueryAnalysis:
    """Overlay a model's structured answer on the rule-based analysis.

    Fields the model omits or gets wrong keep their rule-based values.
    """
    model_intent = _enum_or(Intent, parsed.get("intent"), None)
    intent = model_intent or fallback.intent
    query_type = QueryType(model_intent.value) if model_intent else fallback.query_type
    complexity = _enum_or(Complexity, parsed.get("complexity"), fallback.complexity)

    return replace(
        fallback,
        intent=intent,
        intent_confidence=MODEL_CONFIDENCE,
        complexity=complexity,
        query_type=query_type,
        requires_personal_context=_bool_or(
            parsed.get("requiresPersonalContext"), fallback.requires_personal_context
        ),
        requires_current_info=_bool_or(
            parsed.get("requiresCurrentInfo"), fallback.requires_current_info
        ),
        requires_verification=_bool_or(
            parsed.get("requiresVerification"), fallback.requires_verification
        ),
        confidence=MODEL_CONFIDENCE,
        suggested_strategy=map_strategy(intent, complexity),
    )
