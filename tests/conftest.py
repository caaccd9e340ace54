"""Pytest configuration and shared fakes for hybrid-rag tests."""

import json
from typing import Any

import pytest

from hybrid_rag.llm.base import ChatResponse, EmbeddingProvider, LLMProvider
from hybrid_rag.storage.memory_client import MemoryRecallResponse, MemoryRecord
from hybrid_rag.storage.vector_index import VectorHit
from hybrid_rag.storage.web_search import WebSearchHit, WebSearchResponse


@pytest.fixture
def anyio_backend():
    """Use asyncio for async tests."""
    return "asyncio"


# =============================================================================
# Mock Model Providers
# =============================================================================


class MockLLMProvider(LLMProvider):
    """Mock completion model.

    Usage:
        llm = MockLLMProvider(responses=[{"intent": "conceptual"}])
        result = await llm.chat_json([{"role": "user", "content": "..."}])
        assert result["parsed"] == {"intent": "conceptual"}
    """

    def __init__(
        self,
        default_response: dict[str, Any] | str | None = None,
        responses: list[dict[str, Any] | str] | None = None,
        error: Exception | None = None,
    ):
        self.default_response = default_response if default_response is not None else {}
        self.responses = list(responses) if responses else []
        self.error = error
        self.calls: list[dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def chat(self, messages, **kwargs: Any) -> ChatResponse:
        self.calls.append({"messages": list(messages), **kwargs})
        if self.error is not None:
            raise self.error

        response = self.responses.pop(0) if self.responses else self.default_response
        content = response if isinstance(response, str) else json.dumps(response)
        return ChatResponse(content=content, model="mock")


class MockEmbeddingProvider(EmbeddingProvider):
    """Deterministic embeddings: a short vector derived from text length."""

    def __init__(self, dimension: int = 4, error: Exception | None = None):
        self.dimension = dimension
        self.error = error
        self.embed_calls: list[str] = []
        self.batch_calls: list[list[str]] = []

    @property
    def embedding_dimension(self) -> int:
        return self.dimension

    async def embed(self, text: str) -> list[float]:
        self.embed_calls.append(text)
        if self.error is not None:
            raise self.error
        return [float(len(text))] + [0.0] * (self.dimension - 1)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_calls.append(list(texts))
        if self.error is not None:
            raise self.error
        return [[float(len(t))] + [0.0] * (self.dimension - 1) for t in texts]


# =============================================================================
# Mock Collaborator Clients
# =============================================================================


class MockMemoryClient:
    """Mock memory service client."""

    def __init__(
        self,
        memories: list[MemoryRecord] | None = None,
        timed_out: bool = False,
        error: Exception | None = None,
    ):
        self.memories = memories or []
        self.timed_out = timed_out
        self.error = error
        self.recall_calls: list[dict[str, Any]] = []

    async def recall(self, user_id, thread_id=None, max_items=None, deadline_ms=None):
        self.recall_calls.append(
            {
                "user_id": user_id,
                "thread_id": thread_id,
                "max_items": max_items,
                "deadline_ms": deadline_ms,
            }
        )
        if self.error is not None:
            raise self.error
        if self.timed_out:
            return MemoryRecallResponse(timed_out=True)
        memories = self.memories[:max_items] if max_items else self.memories
        return MemoryRecallResponse(memories=memories, count=len(memories), elapsed_ms=5)

    async def health(self) -> bool:
        return self.error is None


class MockWebClient:
    """Mock web search client."""

    def __init__(self, hits: list[WebSearchHit] | None = None, error: Exception | None = None):
        self.hits = hits or []
        self.error = error
        self.search_calls: list[dict[str, Any]] = []

    async def search(self, query, thread_id=None, user_id=None) -> WebSearchResponse:
        self.search_calls.append({"query": query, "thread_id": thread_id, "user_id": user_id})
        if self.error is not None:
            raise self.error
        return WebSearchResponse(query=query, results=list(self.hits))


class MockVectorIndex:
    """Mock vector index; records search arguments."""

    def __init__(self, hits: list[VectorHit] | None = None, error: Exception | None = None, healthy: bool = True):
        self.hits = hits or []
        self.error = error
        self.healthy = healthy
        self.search_calls: list[dict[str, Any]] = []

    async def search(self, vector, top_k=None, score_threshold=None, filters=None) -> list[VectorHit]:
        self.search_calls.append(
            {
                "vector": vector,
                "top_k": top_k,
                "score_threshold": score_threshold,
                "filters": filters,
            }
        )
        if self.error is not None:
            raise self.error
        threshold = score_threshold or 0.0
        return [h for h in self.hits if h.score >= threshold][: top_k or len(self.hits)]

    async def health(self) -> bool:
        return self.healthy


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Sample data
# =============================================================================


def make_memory(id: str = "m-1", priority: float = 0.8, content: str = "User prefers dark mode") -> MemoryRecord:
    return MemoryRecord(
        id=id,
        user_id="user-1",
        content=content,
        priority=priority,
        thread_id="thread-1",
        tier="hot",
        created_at=1700000000000,
        updated_at=1700000000000,
    )


def make_web_hit(
    title: str = "React - A JavaScript library",
    host: str = "react.dev",
    snippet: str = "",
    date: str | None = None,
) -> WebSearchHit:
    return WebSearchHit(title=title, host=host, snippet=snippet, date=date)


def make_vector_hit(id: str = "v-1", score: float = 0.9, title: str = "React overview") -> VectorHit:
    return VectorHit(id=id, score=score, payload={"title": title, "threadId": "thread-1"})


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_llm() -> MockLLMProvider:
    return MockLLMProvider()
