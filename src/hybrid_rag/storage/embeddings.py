"""Embedding generation through the shared embedding cache."""

import logging

from hybrid_rag.cache import EmbeddingCache
from hybrid_rag.exceptions import EmbeddingError
from hybrid_rag.llm.base import EmbeddingProvider

logger = logging.getLogger(__name__)


class CachedEmbeddingEngine:
    """Cache-first embedding lookups.

    Misses go to the provider and are written back. embed_batch only sends
    the misses, in chunks of batch_size, and returns vectors in input order.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        cache: EmbeddingCache | None = None,
        batch_size: int = 50,
    ):
        self.provider = provider
        self.cache = cache
        self.batch_size = max(1, batch_size)

    @property
    def embedding_dimension(self) -> int:
        return self.provider.embedding_dimension

    async def embed(self, text: str) -> list[float]:
        if self.cache is not None:
            cached = await self.cache.get(text)
            if cached is not None:
                logger.debug(f"Embedding cache hit: {text[:40]}")
                return cached

        try:
            embedding = await self.provider.embed(text)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError("Embedding provider failed", e)

        if self.cache is not None:
            await self.cache.set(text, embedding)
        return embedding

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        results: list[list[float] | None] = [None] * len(texts)
        misses: list[int] = []

        for i, text in enumerate(texts):
            cached = await self.cache.get(text) if self.cache is not None else None
            if cached is not None:
                results[i] = cached
            else:
                misses.append(i)

        logger.debug(f"Embedding batch: {len(texts) - len(misses)} cached, {len(misses)} to generate")

        for start in range(0, len(misses), self.batch_size):
            chunk = misses[start : start + self.batch_size]
            try:
                vectors = await self.provider.embed_batch([texts[i] for i in chunk])
            except EmbeddingError:
                raise
            except Exception as e:
                raise EmbeddingError(f"Embedding batch of {len(chunk)} failed", e)
            if len(vectors) != len(chunk):
                raise EmbeddingError(f"Expected {len(chunk)} embeddings, got {len(vectors)}")

            for i, vector in zip(chunk, vectors):
                results[i] = vector
                if self.cache is not None:
                    await self.cache.set(texts[i], vector)

        return [r for r in results if r is not None]
