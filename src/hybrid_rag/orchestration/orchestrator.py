"""Hybrid retrieval orchestrator.

Pipeline per request:
1. Analyze the query (rules first, model only when unsure)
2. Expand vague or complex queries
3. Plan the layer strategy and apply caller overrides
4. Fan out to every enabled layer concurrently; a failing layer yields []
5. Score overall confidence and assemble the response

Example:
    orchestrator = HybridOrchestrator(
        analyzer=QueryAnalyzer(llm),
        expander=QueryExpander(llm),
        planner=StrategyPlanner(),
        layers=[memory_layer, web_layer, vector_layer, GraphLayer()],
    )
    response = await orchestrator.process_query(
        {"userId": "u-1", "query": "react vs vue vs angular"}
    )
"""

import asyncio
import logging
import time
from typing import Any

from hybrid_rag.cache import QueryCache
from hybrid_rag.layers.base import RetrievalLayer
from hybrid_rag.metrics import MetricsCollector
from hybrid_rag.types import (
    Complexity,
    HybridRequest,
    HybridResponse,
    Layer,
    LayerResults,
    QueryType,
    RetrievalStrategy,
    VerificationSummary,
)

from .analyzer import QueryAnalyzer
from .expander import QueryExpander
from .planner import StrategyPlanner

logger = logging.getLogger(__name__)


def calculate_confidence(results: LayerResults) -> float:
    """Mean of every memory, web and vector score; 0 when there are none."""
    scores = [r.relevance_score for r in results.memory]
    scores += [r.relevance_score for r in results.web]
    scores += [r.similarity for r in results.vector]
    if not scores:
        return 0.0
    return max(0.0, min(1.0, sum(scores) / len(scores)))


class HybridOrchestrator:
    """Coordinates analysis, planning and parallel layer retrieval."""

    def __init__(
        self,
        analyzer: QueryAnalyzer,
        expander: QueryExpander,
        planner: StrategyPlanner,
        layers: list[RetrievalLayer],
        query_cache: QueryCache | None = None,
        metrics: MetricsCollector | None = None,
        expansion_enabled: bool = True,
        max_concurrent_requests: int = 50,
    ):
        self.analyzer = analyzer
        self.expander = expander
        self.planner = planner
        self.layers: dict[Layer, RetrievalLayer] = {layer.layer: layer for layer in layers}
        self.query_cache = query_cache
        self.metrics = metrics or MetricsCollector()
        self.expansion_enabled = expansion_enabled
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent_requests))

    async def process_query(self, request: HybridRequest | dict[str, Any]) -> HybridResponse:
        """Answer one query.

        Raises:
            RequestValidationError: If userId or query is missing
        """
        if not isinstance(request, HybridRequest):
            request = HybridRequest.from_dict(request)

        start = time.perf_counter()
        async with self._semaphore:
            try:
                response = await self._process(request, start)
            except Exception as e:
                self.metrics.increment("rag.query.error")
                logger.error(f"Hybrid RAG processing failed: {e}")
                raise

        self.metrics.record("rag.query", response.latency)
        self.metrics.increment("rag.query.success")
        return response

    async def _process(self, request: HybridRequest, start: float) -> HybridResponse:
        logger.info(f"Processing hybrid RAG query for user {request.user_id}")

        cached = await self._cached_response(request, start)
        if cached is not None:
            return cached

        # Step 1: Analyze
        analysis = await self.analyzer.analyze(request.query, request.context)
        logger.info(
            f"Query analyzed: intent={analysis.intent.value}, "
            f"complexity={analysis.complexity.value}, type={analysis.query_type.value}"
        )

        # Step 2: Expand. Only the original query is retrieved against.
        expansions = [request.query]
        if self.expansion_enabled and (
            analysis.query_type == QueryType.VAGUE or analysis.complexity == Complexity.COMPLEX
        ):
            expansions = await self.expander.expand(request.query, request.context)

        # Step 3: Plan
        strategy = self.planner.plan(analysis)
        strategy = self.planner.apply_overrides(strategy, request.options)
        logger.info(
            f"Strategy planned: layers={[l.value for l in strategy.enabled_layers]}, "
            f"fusion={strategy.fusion_method.value}"
        )

        # Step 4: Retrieve
        results, executed = await self._execute_layers(strategy, request)

        # Step 5: Fuse
        total = results.scored_total
        response = HybridResponse(
            results=results,
            fusion_method=strategy.fusion_method,
            confidence=calculate_confidence(results),
            latency=self._elapsed_ms(start),
            layers_executed=executed,
            verification=VerificationSummary(unverified_count=total),
            query_expansion=expansions,
        )
        logger.info(
            f"Hybrid retrieval complete: {total} results, "
            f"confidence={response.confidence:.2f}, {response.latency}ms"
        )

        await self._store_response(request, response)
        return response

    async def _execute_layers(
        self,
        strategy: RetrievalStrategy,
        request: HybridRequest,
    ) -> tuple[LayerResults, list[Layer]]:
        """Run every enabled layer at once and wait for all of them."""
        layers = [self.layers[l] for l in strategy.enabled_layers if l in self.layers]
        results = LayerResults()

        tasks = [self._timed_retrieve(layer, request) for layer in layers]
        completed = await asyncio.gather(*tasks, return_exceptions=True)

        for layer, result in zip(layers, completed):
            if isinstance(result, BaseException):
                logger.warning(f"{layer.layer.value} layer failed: {result}")
                continue
            layer_results, elapsed = result
            setattr(results, layer.layer.value, list(layer_results))
            self.metrics.record(f"rag.layer.{layer.layer.value}", elapsed)

        return results, [layer.layer for layer in layers]

    async def _timed_retrieve(
        self,
        layer: RetrievalLayer,
        request: HybridRequest,
    ) -> tuple[list[Any], float]:
        start = time.perf_counter()
        results = await layer.retrieve(request)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug(f"{layer.layer.value} layer: {len(results)} results in {elapsed:.0f}ms")
        return results, elapsed

    # =========================================================================
    # Query cache
    # =========================================================================

    def _cacheable(self, request: HybridRequest) -> bool:
        # Entries are keyed by user and query only; memory and vector
        # results are thread-scoped.
        return (
            self.query_cache is not None
            and request.options is None
            and request.thread_id is None
        )

    async def _cached_response(self, request: HybridRequest, start: float) -> HybridResponse | None:
        if not self._cacheable(request):
            return None
        try:
            data = await self.query_cache.get(request.user_id, request.query)
            if data is None:
                return None
            response = HybridResponse.from_dict(data)
        except Exception as e:
            logger.warning(f"Query cache read failed: {e}")
            return None

        response.cached = True
        response.latency = self._elapsed_ms(start)
        self.metrics.increment("rag.cache.hit")
        logger.info("Returning cached hybrid RAG response")
        return response

    async def _store_response(self, request: HybridRequest, response: HybridResponse) -> None:
        if not self._cacheable(request):
            return
        try:
            await self.query_cache.set(request.user_id, request.query, response.to_dict())
        except Exception as e:
            logger.warning(f"Query cache write failed: {e}")

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.perf_counter() - start) * 1000)
