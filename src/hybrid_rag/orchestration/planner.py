"""Strategy planning: which layers run and how their results are labelled.

Plan() is a pure function of the analysis. The decision table is ordered
and the first matching row wins.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable

from hybrid_rag.types import (
    Complexity,
    FusionMethod,
    Layer,
    QueryAnalysis,
    QueryOptions,
    QueryType,
    RetrievalStrategy,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanRule:
    name: str
    matches: Callable[[QueryAnalysis], bool]
    layers: tuple[Layer, ...]  # enabled layers, in priority order
    verification: bool
    fusion: FusionMethod
    needs_expansion: bool = False


PLAN_RULES: tuple[PlanRule, ...] = (
    PlanRule(
        "personal",
        lambda a: a.query_type == QueryType.PERSONAL,
        (Layer.MEMORY, Layer.GRAPH),
        verification=False,
        fusion=FusionMethod.MEMORY_PRIORITY,
    ),
    PlanRule(
        "temporal",
        lambda a: a.query_type == QueryType.TEMPORAL,
        (Layer.WEB, Layer.VECTOR),
        verification=True,
        fusion=FusionMethod.RECENCY_WEIGHTED,
    ),
    PlanRule(
        "conceptual",
        lambda a: a.query_type == QueryType.CONCEPTUAL,
        (Layer.VECTOR, Layer.MEMORY),
        verification=True,
        fusion=FusionMethod.SEMANTIC_PRIORITY,
    ),
    PlanRule(
        "comparative",
        lambda a: a.query_type == QueryType.COMPARATIVE,
        (Layer.WEB, Layer.VECTOR, Layer.MEMORY, Layer.GRAPH),
        verification=True,
        fusion=FusionMethod.COMPREHENSIVE,
    ),
    PlanRule(
        "complex",
        lambda a: a.complexity == Complexity.COMPLEX,
        (Layer.VECTOR, Layer.WEB, Layer.MEMORY, Layer.GRAPH),
        verification=True,
        fusion=FusionMethod.AGENTIC_SYNTHESIS,
        needs_expansion=True,
    ),
)

DEFAULT_RULE = PlanRule(
    "default",
    lambda a: True,
    (Layer.VECTOR, Layer.WEB),
    verification=True,
    fusion=FusionMethod.WEIGHTED,
)


def _strategy_from_rule(rule: PlanRule) -> RetrievalStrategy:
    return RetrievalStrategy(
        use_memory=Layer.MEMORY in rule.layers,
        use_web=Layer.WEB in rule.layers,
        use_vector=Layer.VECTOR in rule.layers,
        use_graph=Layer.GRAPH in rule.layers,
        enable_verification=rule.verification,
        layer_priority=list(rule.layers),
        fusion_method=rule.fusion,
        needs_expansion=rule.needs_expansion,
    )


class StrategyPlanner:
    """Maps a QueryAnalysis to a RetrievalStrategy."""

    def __init__(self, rules: tuple[PlanRule, ...] = PLAN_RULES):
        self.rules = rules

    def plan(self, analysis: QueryAnalysis) -> RetrievalStrategy:
        for rule in self.rules:
            if rule.matches(analysis):
                return _strategy_from_rule(rule)
        return _strategy_from_rule(DEFAULT_RULE)

    def apply_overrides(
        self,
        strategy: RetrievalStrategy,
        options: QueryOptions | None,
    ) -> RetrievalStrategy:
        """Apply caller layer toggles.

        Only the four layer booleans can be overridden. Whenever options are
        supplied and any layer is enabled afterwards, the priority list is
        rebuilt in canonical order (memory, web, vector, graph).
        """
        if options is None:
            return strategy

        overrides = options.layer_overrides()
        overridden = replace(
            strategy,
            use_memory=overrides.get(Layer.MEMORY, strategy.use_memory),
            use_web=overrides.get(Layer.WEB, strategy.use_web),
            use_vector=overrides.get(Layer.VECTOR, strategy.use_vector),
            use_graph=overrides.get(Layer.GRAPH, strategy.use_graph),
        )

        enabled = [layer for layer in Layer if overridden.is_enabled(layer)]
        if enabled:
            overridden = replace(overridden, layer_priority=enabled)

        logger.debug(f"Strategy overridden: {[l.value for l in overrides]}")
        return overridden
