"""Graph layer placeholder.

Relationship traversal is not implemented; the layer exists so strategies
that enable it keep their shape and graphPaths is always present.
"""

from hybrid_rag.types import GraphPath, HybridRequest, Layer

from .base import RetrievalLayer


class GraphLayer(RetrievalLayer):
    @property
    def layer(self) -> Layer:
        return Layer.GRAPH

    async def retrieve(self, request: HybridRequest) -> list[GraphPath]:
        return []
