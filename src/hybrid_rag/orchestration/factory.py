"""Wire the orchestrator and its collaborators from configuration."""

import logging
from dataclasses import dataclass, field
from typing import Any

from hybrid_rag.cache import EmbeddingCache, QueryCache, create_cache
from hybrid_rag.config import HybridRAGConfig
from hybrid_rag.layers import GraphLayer, MemoryLayer, RetrievalLayer, VectorLayer, WebLayer
from hybrid_rag.llm import create_embedder, create_llm
from hybrid_rag.metrics import MetricsCollector
from hybrid_rag.storage import (
    CachedEmbeddingEngine,
    MemoryServiceClient,
    VectorIndexClient,
    WebSearchClient,
)

from .analyzer import QueryAnalyzer
from .expander import QueryExpander
from .orchestrator import HybridOrchestrator
from .planner import StrategyPlanner

logger = logging.getLogger(__name__)


@dataclass
class RAGServices:
    """The orchestrator plus every resource that needs closing on shutdown."""

    orchestrator: HybridOrchestrator
    vector_index: VectorIndexClient
    resources: list[Any] = field(default_factory=list)

    async def close(self) -> None:
        for resource in self.resources:
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"Error closing {type(resource).__name__}: {e}")


def create_services(
    config: HybridRAGConfig,
    metrics: MetricsCollector | None = None,
) -> RAGServices:
    """Build the full read path from configuration.

    No network calls happen here; clients connect lazily.
    """
    llm = create_llm(config.llm)

    embedding_store = create_cache(
        config.cache.redis_url,
        config.cache.local_max_entries,
        config.cache.embedding_ttl,
    )
    embeddings = CachedEmbeddingEngine(
        create_embedder(config.embedding),
        EmbeddingCache(embedding_store, config.cache.embedding_ttl),
        batch_size=config.embedding.batch_size,
    )
    vector_index = VectorIndexClient(config.vector, dimension=config.embedding.dimensions)
    memory_client = MemoryServiceClient(config.memory.url, config.memory.deadline_ms)
    web_client = WebSearchClient(config.web.url, config.web.timeout_seconds)

    layers: list[RetrievalLayer] = [
        MemoryLayer(memory_client, deadline_ms=config.memory.deadline_ms),
        WebLayer(web_client),
        VectorLayer(
            embeddings,
            vector_index,
            default_top_k=config.vector.top_k,
            default_min_similarity=config.vector.min_similarity,
        ),
    ]
    if config.features.graph_relationships:
        layers.append(GraphLayer())

    resources: list[Any] = [memory_client, web_client, vector_index, embedding_store]

    query_cache = None
    if config.features.query_cache:
        query_store = create_cache(
            config.cache.redis_url,
            config.cache.local_max_entries,
            config.cache.query_ttl,
        )
        query_cache = QueryCache(query_store, config.cache.query_ttl)
        resources.append(query_store)

    orchestrator = HybridOrchestrator(
        analyzer=QueryAnalyzer(llm, temporal_context=config.features.temporal_retrieval),
        expander=QueryExpander(llm),
        planner=StrategyPlanner(),
        layers=layers,
        query_cache=query_cache,
        metrics=metrics,
        expansion_enabled=config.expansion_enabled,
        max_concurrent_requests=config.server.max_concurrent_requests,
    )

    logger.info(
        f"Hybrid RAG services created: layers={[l.layer.value for l in layers]}, "
        f"llm={'on' if llm else 'off'}, redis={'on' if config.cache.redis_url else 'off'}"
    )
    return RAGServices(orchestrator=orchestrator, vector_index=vector_index, resources=resources)
