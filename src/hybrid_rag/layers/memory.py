"""Memory layer: durable per-user conversational memory."""

import logging

from hybrid_rag.storage.memory_client import MemoryServiceClient
from hybrid_rag.types import HybridRequest, Layer, MemoryProvenance, MemoryResult

from .base import RetrievalLayer, clamp_score

logger = logging.getLogger(__name__)


class MemoryLayer(RetrievalLayer):
    """Recalls memories for the requesting user.

    Memory is never global: a request without a userId gets nothing.
    The memory's stored priority doubles as its relevance score.
    """

    def __init__(
        self,
        client: MemoryServiceClient,
        deadline_ms: int = 200,
        default_max_items: int = 10,
    ):
        self.client = client
        self.deadline_ms = deadline_ms
        self.default_max_items = default_max_items

    @property
    def layer(self) -> Layer:
        return Layer.MEMORY

    async def retrieve(self, request: HybridRequest) -> list[MemoryResult]:
        if not request.user_id:
            return []

        max_items = (request.options.max_results if request.options else None) or self.default_max_items

        try:
            response = await self.client.recall(
                user_id=request.user_id,
                thread_id=request.thread_id,
                max_items=max_items,
                deadline_ms=self.deadline_ms,
            )
        except Exception as e:
            logger.warning(f"Memory retrieval failed: {e}")
            return []

        if response.timed_out:
            logger.warning("Memory recall timed out")
            return []

        results = [
            MemoryResult(
                id=m.id,
                content=m.content,
                relevance_score=clamp_score(m.priority),
                created_at=m.created_at,
                provenance=MemoryProvenance(
                    user_id=m.user_id,
                    thread_id=m.thread_id,
                    priority=m.priority,
                    tier=m.tier,
                ),
            )
            for m in response.memories
        ]
        logger.debug(f"Memory layer returned {len(results)} results")
        return results

    async def health(self) -> bool:
        return await self.client.health()
