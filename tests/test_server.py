"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from conftest import (
    MockEmbeddingProvider,
    MockMemoryClient,
    MockVectorIndex,
    MockWebClient,
    make_memory,
    make_vector_hit,
    make_web_hit,
)
from hybrid_rag.layers import GraphLayer, MemoryLayer, VectorLayer, WebLayer
from hybrid_rag.metrics import MetricsCollector
from hybrid_rag.orchestration import HybridOrchestrator, QueryAnalyzer, QueryExpander, StrategyPlanner
from hybrid_rag.server import create_app
from hybrid_rag.storage import CachedEmbeddingEngine


class FailingOrchestrator:
    """Stands in for an orchestrator whose pipeline blows up."""

    def __init__(self):
        self.metrics = MetricsCollector()
        self.calls = 0

    async def process_query(self, request):
        self.calls += 1
        raise RuntimeError("pipeline exploded")


@pytest.fixture
def vector_index() -> MockVectorIndex:
    return MockVectorIndex(hits=[make_vector_hit()])


@pytest.fixture
def orchestrator(vector_index) -> HybridOrchestrator:
    return HybridOrchestrator(
        analyzer=QueryAnalyzer(),
        expander=QueryExpander(),
        planner=StrategyPlanner(),
        layers=[
            MemoryLayer(MockMemoryClient(memories=[make_memory()])),
            WebLayer(MockWebClient(hits=[make_web_hit()])),
            VectorLayer(CachedEmbeddingEngine(MockEmbeddingProvider()), vector_index),
            GraphLayer(),
        ],
    )


@pytest.fixture
def client(orchestrator, vector_index):
    app = create_app(orchestrator=orchestrator, vector_index=vector_index)
    with TestClient(app) as test_client:
        yield test_client


class TestHybridEndpoint:
    """Tests for POST /v1/rag/hybrid."""

    def test_success(self, client):
        resp = client.post(
            "/v1/rag/hybrid",
            json={"userId": "user-1", "threadId": "thread-1", "query": "What is React?"},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["layersExecuted"] == ["vector", "web"]
        assert data["strategy"] == "weighted"
        assert data["graphPaths"] == []
        assert data["synthesis"]["totalResults"] == 2
        assert data["vectorResults"][0]["embeddingId"] == "v-1"

    def test_context_and_options_accepted(self, client):
        resp = client.post(
            "/v1/rag/hybrid",
            json={
                "userId": "user-1",
                "query": "What is React?",
                "context": {
                    "recentMessages": [{"role": "user", "content": "hi"}],
                    "userPreferences": {"language": "en"},
                },
                "options": {"enableMemory": True, "maxResults": 3},
            },
        )

        assert resp.status_code == 200
        assert resp.json()["layersExecuted"] == ["memory", "web", "vector"]

    @pytest.mark.parametrize(
        "body,field",
        [
            ({"query": "What is React?"}, "userId"),
            ({"userId": "user-1"}, "query"),
            ({"userId": "user-1", "query": "   "}, "query"),
            ({"userId": 5, "query": "What is React?"}, "userId"),
            ({"userId": "user-1", "query": ["What", "is", "React?"]}, "query"),
        ],
    )
    def test_missing_fields_are_400(self, client, vector_index, body, field):
        resp = client.post("/v1/rag/hybrid", json=body)

        assert resp.status_code == 400
        assert resp.json() == {"error": f"{field} is required", "field": field}
        assert vector_index.search_calls == []

    def test_pipeline_failure_is_500(self, vector_index):
        orchestrator = FailingOrchestrator()
        app = create_app(orchestrator=orchestrator, vector_index=vector_index)

        with TestClient(app) as client:
            resp = client.post("/v1/rag/hybrid", json={"userId": "user-1", "query": "What is React?"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "RAG query failed", "message": "pipeline exploded"}
        assert orchestrator.calls == 1


class TestHealthAndMetrics:
    """Tests for GET /health and GET /metrics."""

    def test_health(self, client):
        client.post("/v1/rag/hybrid", json={"userId": "user-1", "query": "What is React?"})

        resp = client.get("/health")

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["service"] == "hybrid-rag"
        assert data["components"] == {"vector": "healthy"}
        assert data["metrics"]["totalRequests"] == 1
        assert data["metrics"]["avgLatency"] >= 0
        assert "timestamp" in data

    def test_health_counts_every_request(self, vector_index):
        metrics = MetricsCollector(max_points=5)
        orchestrator = HybridOrchestrator(
            analyzer=QueryAnalyzer(),
            expander=QueryExpander(),
            planner=StrategyPlanner(),
            layers=[VectorLayer(CachedEmbeddingEngine(MockEmbeddingProvider()), vector_index)],
            metrics=metrics,
        )
        app = create_app(orchestrator=orchestrator, vector_index=vector_index)

        with TestClient(app) as client:
            for _ in range(12):
                client.post("/v1/rag/hybrid", json={"userId": "user-1", "query": "What is React?"})
            health = client.get("/health").json()
            summary = client.get("/metrics").json()

        assert health["metrics"]["totalRequests"] == 12
        assert summary["rag.query"]["count"] == 12
        assert summary["rag.query.success"]["count"] == 12

    def test_health_degraded(self, orchestrator):
        app = create_app(orchestrator=orchestrator, vector_index=MockVectorIndex(healthy=False))

        with TestClient(app) as client:
            data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["components"] == {"vector": "unhealthy"}
        assert data["metrics"] == {"totalRequests": 0, "avgLatency": 0}

    def test_metrics(self, client):
        client.post("/v1/rag/hybrid", json={"userId": "user-1", "query": "What is React?"})

        data = client.get("/metrics").json()

        assert data["rag.query"]["count"] == 1
        assert data["rag.query.success"]["count"] == 1
        assert "rag.layer.vector" in data
