"""Ollama embedding provider."""

from dataclasses import dataclass

from ollama import AsyncClient

from hybrid_rag.exceptions import EmbeddingError

from .base import EmbeddingProvider


@dataclass
class OllamaConfig:
    """Configuration for the Ollama embedding provider."""

    base_url: str = "http://localhost:11434"
    embedding_model: str = "nomic-embed-text"
    dimensions: int = 768


class OllamaEmbedder(EmbeddingProvider):
    """Embeddings from a local Ollama server.

    Usage:
        embedder = OllamaEmbedder(OllamaConfig(base_url="http://ollama:11434"))
        vector = await embedder.embed("What is React?")
    """

    def __init__(self, config: OllamaConfig | None = None, client: AsyncClient | None = None):
        self.config = config or OllamaConfig()
        self._client = client

    @property
    def client(self) -> AsyncClient:
        """Lazy-load the Ollama client."""
        if self._client is None:
            self._client = AsyncClient(host=self.config.base_url)
        return self._client

    @property
    def embedding_dimension(self) -> int:
        return self.config.dimensions

    async def embed(self, text: str) -> list[float]:
        try:
            response = await self.client.embeddings(
                model=self.config.embedding_model,
                prompt=text,
            )
        except Exception as e:
            raise EmbeddingError(f"Ollama embedding failed for model {self.config.embedding_model}", e)

        embedding = response["embedding"]
        if not embedding:
            raise EmbeddingError("Ollama returned an empty embedding")
        return list(embedding)
