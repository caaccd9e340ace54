"""hybrid-rag: hybrid retrieval orchestrator.

Answers a query by combining durable conversational memory, live web
search and a semantic vector index into one confidence-scored response.
No single source's latency or failure blocks the others.

Quick start:
    from hybrid_rag import HybridRAGConfig, create_services

    services = create_services(HybridRAGConfig.from_env())
    response = await services.orchestrator.process_query(
        {"userId": "u-1", "query": "What is React?"}
    )
    print(response.to_dict())
"""

__version__ = "0.1.0"

from hybrid_rag.config import HybridRAGConfig
from hybrid_rag.exceptions import (
    CacheError,
    ConfigurationError,
    EmbeddingError,
    HybridRAGError,
    LLMError,
    MemoryServiceError,
    ProviderError,
    RequestValidationError,
    VectorStoreError,
    WebSearchError,
)
from hybrid_rag.metrics import MetricsCollector
from hybrid_rag.orchestration import (
    HybridOrchestrator,
    QueryAnalyzer,
    QueryExpander,
    RAGServices,
    StrategyPlanner,
    create_services,
)
from hybrid_rag.types import (
    Complexity,
    FusionMethod,
    HybridRequest,
    HybridResponse,
    Intent,
    Layer,
    MemoryResult,
    QueryAnalysis,
    QueryType,
    RetrievalStrategy,
    VectorResult,
    WebResult,
)

__all__ = [
    "__version__",
    # Config
    "HybridRAGConfig",
    # Errors
    "CacheError",
    "ConfigurationError",
    "EmbeddingError",
    "HybridRAGError",
    "LLMError",
    "MemoryServiceError",
    "ProviderError",
    "RequestValidationError",
    "VectorStoreError",
    "WebSearchError",
    # Orchestration
    "HybridOrchestrator",
    "MetricsCollector",
    "QueryAnalyzer",
    "QueryExpander",
    "RAGServices",
    "StrategyPlanner",
    "create_services",
    # Types
    "Complexity",
    "FusionMethod",
    "HybridRequest",
    "HybridResponse",
    "Intent",
    "Layer",
    "MemoryResult",
    "QueryAnalysis",
    "QueryType",
    "RetrievalStrategy",
    "VectorResult",
    "WebResult",
]
