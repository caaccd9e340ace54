"""HTTP server for hybrid-rag.

Routes:
    - POST /v1/rag/hybrid: answer one query
    - GET /health: service and vector index status
    - GET /metrics: per-metric summaries

Usage:
    # Run as module
    python -m hybrid_rag.server

    # Or build the app yourself
    from hybrid_rag.server import create_app
    app = create_app(config=HybridRAGConfig.from_env())
"""

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from hybrid_rag import exceptions
from hybrid_rag.config import HybridRAGConfig
from hybrid_rag.metrics import MetricsCollector
from hybrid_rag.orchestration import HybridOrchestrator, create_services
from hybrid_rag.storage import VectorIndexClient
from hybrid_rag.types import HybridRequest

logger = logging.getLogger(__name__)


# =============================================================================
# Request models
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecentMessageModel(_CamelModel):
    role: str
    content: str


class QueryContextModel(_CamelModel):
    recent_messages: list[RecentMessageModel] | None = None
    conversation_summary: str | None = None
    user_preferences: dict[str, Any] | None = None


class QueryOptionsModel(_CamelModel):
    max_results: int | None = None
    min_confidence: float | None = None
    enable_verification: bool | None = None
    enable_memory: bool | None = None
    enable_web_research: bool | None = None
    enable_vector: bool | None = None
    enable_graph: bool | None = None
    max_hops: int | None = None


class HybridRAGRequestModel(_CamelModel):
    """Request body. userId and query are checked after parsing so a
    missing or mistyped field is a 400, not a schema error."""

    user_id: Any = None
    thread_id: str | None = None
    query: Any = None
    context: QueryContextModel | None = None
    options: QueryOptionsModel | None = None

    def to_request(self) -> HybridRequest:
        return HybridRequest.from_dict(self.model_dump(by_alias=True, exclude_none=True))


# =============================================================================
# Application
# =============================================================================


def create_app(
    orchestrator: HybridOrchestrator | None = None,
    vector_index: VectorIndexClient | None = None,
    metrics: MetricsCollector | None = None,
    config: HybridRAGConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Collaborators that are not supplied are built from config when the
    app starts.
    """
    config = config or HybridRAGConfig()
    metrics = metrics or (orchestrator.metrics if orchestrator else MetricsCollector())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = None
        if app.state.orchestrator is None:
            services = create_services(config, metrics)
            app.state.orchestrator = services.orchestrator
            app.state.vector_index = services.vector_index
            try:
                await services.vector_index.initialize()
            except exceptions.VectorStoreError as e:
                logger.warning(f"Vector index not ready, continuing degraded: {e}")

        logger.info(f"{config.server.service_name} v{config.server.version} started")
        try:
            yield
        finally:
            if services is not None:
                await services.close()
            logger.info(f"{config.server.service_name} shut down")

    app = FastAPI(
        title="Hybrid RAG",
        version=config.server.version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.orchestrator = orchestrator
    app.state.vector_index = vector_index
    app.state.metrics = metrics
    app.state.config = config

    @app.exception_handler(exceptions.RequestValidationError)
    async def request_validation_handler(request: Request, exc: exceptions.RequestValidationError):
        body = {"error": str(exc)}
        if exc.field:
            body["field"] = exc.field
        return JSONResponse(status_code=400, content=body)

    @app.post("/v1/rag/hybrid")
    async def hybrid_rag(body: HybridRAGRequestModel, request: Request):
        hybrid_request = body.to_request()
        try:
            response = await request.app.state.orchestrator.process_query(hybrid_request)
        except Exception as e:
            logger.error(f"RAG query failed: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": "RAG query failed", "message": str(e)},
            )
        return response.to_dict()

    @app.get("/health")
    async def health(request: Request):
        index = request.app.state.vector_index
        vector_ok = await index.health() if index is not None else False
        latency = request.app.state.metrics.summarize("rag.query")

        return {
            "status": "healthy" if vector_ok else "degraded",
            "service": config.server.service_name,
            "version": config.server.version,
            "components": {"vector": "healthy" if vector_ok else "unhealthy"},
            "metrics": {
                "totalRequests": latency.count if latency else 0,
                "avgLatency": latency.avg if latency else 0,
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/metrics")
    async def get_metrics(request: Request):
        return request.app.state.metrics.summary()

    return app


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main() -> None:
    """Run the server with configuration from the environment."""
    config = HybridRAGConfig.from_env()
    _setup_logging(config.server.log_level)
    logger.info(f"Starting {config.server.service_name} on {config.server.host}:{config.server.port}")

    uvicorn.run(
        create_app(config=config),
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level.lower(),
    )


if __name__ == "__main__":
    main()
