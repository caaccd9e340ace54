"""Model provider layer for hybrid-rag.

Implementations:
    - GroqLLM: completion model for query analysis and expansion
    - OllamaEmbedder: embeddings for vector search

Usage:
    from hybrid_rag.llm import create_llm, create_embedder

    llm = create_llm(config.llm)          # None without an API key
    embedder = create_embedder(config.embedding)
"""

from hybrid_rag.llm.base import (
    ChatMessage,
    ChatResponse,
    EmbeddingProvider,
    LLMProvider,
    extract_json,
)
from hybrid_rag.llm.factory import create_embedder, create_llm

__all__ = [
    "ChatMessage",
    "ChatResponse",
    "EmbeddingProvider",
    "LLMProvider",
    "extract_json",
    "create_embedder",
    "create_llm",
]
