"""Query understanding, planning and parallel retrieval.

Components:
    - QueryAnalyzer: rule-first intent and complexity classification
    - QueryExpander: model-assisted rewrites of vague queries
    - StrategyPlanner: analysis -> enabled layers and fusion label
    - HybridOrchestrator: runs the pipeline and fans out to layers
"""

from hybrid_rag.orchestration.analyzer import ANALYSIS_RULES, AnalysisRule, QueryAnalyzer
from hybrid_rag.orchestration.expander import QueryExpander, needs_expansion
from hybrid_rag.orchestration.factory import RAGServices, create_services
from hybrid_rag.orchestration.orchestrator import HybridOrchestrator, calculate_confidence
from hybrid_rag.orchestration.planner import PLAN_RULES, PlanRule, StrategyPlanner

__all__ = [
    "ANALYSIS_RULES",
    "AnalysisRule",
    "HybridOrchestrator",
    "PLAN_RULES",
    "PlanRule",
    "QueryAnalyzer",
    "QueryExpander",
    "RAGServices",
    "StrategyPlanner",
    "calculate_confidence",
    "create_services",
    "needs_expansion",
]
