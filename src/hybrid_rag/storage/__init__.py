"""Collaborator clients: embeddings, vector index, memory recall, web search."""

from hybrid_rag.storage.embeddings import CachedEmbeddingEngine
from hybrid_rag.storage.memory_client import (
    MemoryRecallResponse,
    MemoryRecord,
    MemoryServiceClient,
)
from hybrid_rag.storage.vector_index import VectorHit, VectorIndexClient, VectorPoint
from hybrid_rag.storage.web_search import WebSearchClient, WebSearchHit, WebSearchResponse

__all__ = [
    "CachedEmbeddingEngine",
    "MemoryRecallResponse",
    "MemoryRecord",
    "MemoryServiceClient",
    "VectorHit",
    "VectorIndexClient",
    "VectorPoint",
    "WebSearchClient",
    "WebSearchHit",
    "WebSearchResponse",
]
