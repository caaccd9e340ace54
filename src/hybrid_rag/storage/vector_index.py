"""Qdrant-backed vector index client.

The read path only searches. upsert/delete exist for index maintenance
tooling and are not called while answering queries.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models as qdrant_models
from qdrant_client.http.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointStruct,
    VectorParams,
)

from hybrid_rag.config import VectorConfig
from hybrid_rag.exceptions import VectorStoreError

logger = logging.getLogger(__name__)


@dataclass
class VectorHit:
    """One nearest-neighbour match."""

    id: str
    score: float
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def content(self) -> str:
        return self.payload.get("title") or self.payload.get("content") or ""


@dataclass
class VectorPoint:
    """A point to write into the index."""

    id: str | int
    vector: list[float]
    payload: dict[str, Any] = field(default_factory=dict)


class VectorIndexClient:
    """Thin async client over one Qdrant collection.

    Usage:
        index = VectorIndexClient(VectorConfig(url="http://qdrant:6333"), dimension=768)
        await index.initialize()
        hits = await index.search(vector, top_k=10, score_threshold=0.6)
    """

    def __init__(
        self,
        config: VectorConfig,
        dimension: int = 768,
        client: AsyncQdrantClient | None = None,
    ):
        self.config = config
        self.dimension = dimension
        self._client = client
        self._initialized = False

    @property
    def client(self) -> AsyncQdrantClient:
        if self._client is None:
            self._client = AsyncQdrantClient(
                url=self.config.url,
                api_key=self.config.api_key,
                timeout=int(self.config.timeout),
            )
        return self._client

    @property
    def collection(self) -> str:
        return self.config.collection

    async def initialize(self) -> None:
        """Create the collection (cosine distance) if it doesn't exist."""
        if self._initialized:
            return
        try:
            collections = await self.client.get_collections()
            exists = any(c.name == self.collection for c in collections.collections)
            if not exists:
                await self.client.create_collection(
                    collection_name=self.collection,
                    vectors_config=VectorParams(
                        size=self.dimension,
                        distance=Distance.COSINE,
                    ),
                )
                logger.info(f"Created Qdrant collection: {self.collection}")
        except Exception as e:
            raise VectorStoreError(f"Failed to initialize collection {self.collection}", e)

        self._initialized = True
        logger.info(f"VectorIndexClient initialized with collection: {self.collection}")

    @staticmethod
    def _build_filter(filters: dict[str, Any] | None) -> Filter | None:
        if not filters:
            return None
        must_conditions = [
            FieldCondition(key=key, match=MatchValue(value=value))
            for key, value in filters.items()
            if value is not None
        ]
        return Filter(must=must_conditions) if must_conditions else None

    async def search(
        self,
        vector: list[float],
        top_k: int | None = None,
        score_threshold: float | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[VectorHit]:
        """Nearest-neighbour search.

        Args:
            vector: Query embedding
            top_k: Maximum hits (default from config)
            score_threshold: Minimum similarity (default from config)
            filters: Payload key/value pairs that must all match

        Raises:
            VectorStoreError: If the search call fails
        """
        try:
            response = await self.client.query_points(
                collection_name=self.collection,
                query=vector,
                query_filter=self._build_filter(filters),
                limit=top_k or self.config.top_k,
                score_threshold=(
                    score_threshold if score_threshold is not None else self.config.min_similarity
                ),
                with_payload=True,
            )
        except Exception as e:
            raise VectorStoreError(f"Vector search on {self.collection} failed", e)

        return [
            VectorHit(id=str(point.id), score=point.score, payload=point.payload or {})
            for point in response.points
        ]

    async def upsert(self, points: list[VectorPoint]) -> None:
        if not points:
            return
        try:
            await self.client.upsert(
                collection_name=self.collection,
                points=[
                    PointStruct(id=p.id, vector=p.vector, payload=p.payload)
                    for p in points
                ],
            )
        except Exception as e:
            raise VectorStoreError(f"Upsert of {len(points)} points failed", e)
        logger.debug(f"Upserted {len(points)} points into {self.collection}")

    async def delete(self, ids: list[str | int]) -> None:
        if not ids:
            return
        try:
            await self.client.delete(
                collection_name=self.collection,
                points_selector=qdrant_models.PointIdsList(points=list(ids)),
            )
        except Exception as e:
            raise VectorStoreError(f"Delete of {len(ids)} points failed", e)

    async def health(self) -> bool:
        try:
            await self.client.get_collections()
            return True
        except Exception as e:
            logger.warning(f"Vector index health check failed: {e}")
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
        self._initialized = False
