"""Vector layer: semantic search over the world-knowledge index."""

import logging

from hybrid_rag.storage.embeddings import CachedEmbeddingEngine
from hybrid_rag.storage.vector_index import VectorIndexClient
from hybrid_rag.types import HybridRequest, Layer, VectorResult

from .base import RetrievalLayer, clamp_score, now_ms

logger = logging.getLogger(__name__)


class VectorLayer(RetrievalLayer):
    """Embeds the query and searches the vector index.

    Results are filtered by threadId only. The index is not scoped per
    user, so any user's query can match any indexed document.
    """

    def __init__(
        self,
        embeddings: CachedEmbeddingEngine,
        index: VectorIndexClient,
        default_top_k: int = 10,
        default_min_similarity: float = 0.6,
    ):
        self.embeddings = embeddings
        self.index = index
        self.default_top_k = default_top_k
        self.default_min_similarity = default_min_similarity

    @property
    def layer(self) -> Layer:
        return Layer.VECTOR

    async def retrieve(self, request: HybridRequest) -> list[VectorResult]:
        options = request.options
        top_k = (options.max_results if options else None) or self.default_top_k
        min_similarity = (
            options.min_confidence
            if options and options.min_confidence is not None
            else self.default_min_similarity
        )
        filters = {"threadId": request.thread_id} if request.thread_id else None

        try:
            vector = await self.embeddings.embed(request.query)
            hits = await self.index.search(
                vector,
                top_k=top_k,
                score_threshold=min_similarity,
                filters=filters,
            )
        except Exception as e:
            logger.warning(f"Vector retrieval failed: {e}")
            return []

        retrieved_at = now_ms()
        results = [
            VectorResult(
                content=hit.content,
                source=hit.payload,
                similarity=clamp_score(hit.score),
                embedding_id=hit.id,
                retrieved_at=retrieved_at,
            )
            for hit in hits
        ]
        logger.debug(f"Vector layer returned {len(results)} results")
        return results

    async def health(self) -> bool:
        return await self.index.health()
