"""Core data types for the hybrid retrieval read path.

Request types are validated once, at the orchestration boundary
(`HybridRequest.from_dict`). Everything downstream works with these typed
shapes instead of free-form JSON.

Wire format is camelCase (`to_dict` / `from_dict`); Python attributes are
snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from hybrid_rag.exceptions import RequestValidationError


# =============================================================================
# Enums
# =============================================================================


class Intent(str, Enum):
    """Primary intent of a query."""

    PERSONAL = "personal"  # "What did I say about..."
    FACTUAL = "factual"  # "What is React?"
    CONCEPTUAL = "conceptual"  # "Explain dependency injection"
    COMPARATIVE = "comparative"  # "react vs vue"
    TEMPORAL = "temporal"  # "latest news on..."


class QueryType(str, Enum):
    """Query type used for planning. Same as Intent plus VAGUE."""

    PERSONAL = "personal"
    FACTUAL = "factual"
    CONCEPTUAL = "conceptual"
    COMPARATIVE = "comparative"
    TEMPORAL = "temporal"
    VAGUE = "vague"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class FusionMethod(str, Enum):
    """Label consumed by a downstream ranking stage."""

    WEIGHTED = "weighted"
    MEMORY_PRIORITY = "memory_priority"
    RECENCY_WEIGHTED = "recency_weighted"
    SEMANTIC_PRIORITY = "semantic_priority"
    COMPREHENSIVE = "comprehensive"
    AGENTIC_SYNTHESIS = "agentic_synthesis"


class Layer(str, Enum):
    """Retrieval layers. Order of definition is the canonical priority order."""

    MEMORY = "memory"
    WEB = "web"
    VECTOR = "vector"
    GRAPH = "graph"


# =============================================================================
# Request
# =============================================================================


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str


@dataclass(frozen=True)
class QueryContext:
    """Optional conversational context supplied with a query."""

    recent_messages: list[ConversationTurn] = field(default_factory=list)
    conversation_summary: str | None = None
    user_preferences: dict[str, Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> QueryContext | None:
        if not data:
            return None
        if not isinstance(data, dict):
            raise RequestValidationError("context must be an object", field="context")

        turns = []
        for msg in data.get("recentMessages") or []:
            if isinstance(msg, dict):
                turns.append(
                    ConversationTurn(
                        role=str(msg.get("role", "user")),
                        content=str(msg.get("content", "")),
                    )
                )

        preferences = data.get("userPreferences")
        return cls(
            recent_messages=turns,
            conversation_summary=data.get("conversationSummary"),
            user_preferences=preferences if isinstance(preferences, dict) else None,
        )


@dataclass(frozen=True)
class QueryOptions:
    """Caller-supplied per-request options. None means "not specified"."""

    max_results: int | None = None
    min_confidence: float | None = None
    enable_verification: bool | None = None
    enable_memory: bool | None = None
    enable_web_research: bool | None = None
    enable_vector: bool | None = None
    enable_graph: bool | None = None
    max_hops: int | None = None

    _WIRE_NAMES = {
        "maxResults": "max_results",
        "minConfidence": "min_confidence",
        "enableVerification": "enable_verification",
        "enableMemory": "enable_memory",
        "enableWebResearch": "enable_web_research",
        "enableVector": "enable_vector",
        "enableGraph": "enable_graph",
        "maxHops": "max_hops",
    }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> QueryOptions | None:
        if data is None:
            return None
        if not isinstance(data, dict):
            raise RequestValidationError("options must be an object", field="options")

        values = {
            attr: data[wire]
            for wire, attr in cls._WIRE_NAMES.items()
            if data.get(wire) is not None
        }
        return cls(**values)

    def layer_overrides(self) -> dict[Layer, bool]:
        """Per-layer enable flags the caller actually set."""
        overrides = {
            Layer.MEMORY: self.enable_memory,
            Layer.WEB: self.enable_web_research,
            Layer.VECTOR: self.enable_vector,
            Layer.GRAPH: self.enable_graph,
        }
        return {layer: bool(v) for layer, v in overrides.items() if v is not None}


@dataclass(frozen=True)
class HybridRequest:
    """A validated inbound query. Immutable once received."""

    user_id: str
    query: str
    thread_id: str | None = None
    context: QueryContext | None = None
    options: QueryOptions | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HybridRequest:
        """Validate a raw request body.

        Raises:
            RequestValidationError: If userId or query is missing/blank
        """
        if not isinstance(data, dict):
            raise RequestValidationError("request body must be an object")

        user_id = data.get("userId")
        if not user_id or not isinstance(user_id, str):
            raise RequestValidationError("userId is required", field="userId")

        query = data.get("query")
        if not query or not isinstance(query, str) or not query.strip():
            raise RequestValidationError("query is required", field="query")

        thread_id = data.get("threadId")
        return cls(
            user_id=user_id,
            query=query,
            thread_id=str(thread_id) if thread_id else None,
            context=QueryContext.from_dict(data.get("context")),
            options=QueryOptions.from_dict(data.get("options")),
        )


# =============================================================================
# Analysis and Strategy
# =============================================================================


@dataclass(frozen=True)
class TemporalContext:
    has_date: bool
    relative_time: str | None = None  # today, yesterday, last_week, last_month, this_year
    date_range: tuple[str, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"hasDate": self.has_date}
        if self.relative_time:
            data["relativeTime"] = self.relative_time
        if self.date_range:
            data["dateRange"] = {"from": self.date_range[0], "to": self.date_range[1]}
        return data


@dataclass(frozen=True)
class QueryAnalysis:
    """Result of classifying a query. Created once per request."""

    intent: Intent
    intent_confidence: float
    complexity: Complexity
    query_type: QueryType
    requires_personal_context: bool
    requires_current_info: bool
    requires_verification: bool
    confidence: float
    suggested_strategy: FusionMethod
    entities: list[str] = field(default_factory=list)
    temporal_context: TemporalContext | None = None

    @classmethod
    def default(cls) -> QueryAnalysis:
        """Low-confidence analysis used when classification itself fails."""
        return cls(
            intent=Intent.FACTUAL,
            intent_confidence=0.5,
            complexity=Complexity.MEDIUM,
            query_type=QueryType.FACTUAL,
            requires_personal_context=False,
            requires_current_info=True,
            requires_verification=True,
            confidence=0.5,
            suggested_strategy=FusionMethod.WEIGHTED,
        )


@dataclass(frozen=True)
class RetrievalStrategy:
    """Which layers run for one query, their priority, and the fusion label."""

    use_memory: bool = False
    use_web: bool = False
    use_vector: bool = False
    use_graph: bool = False
    enable_verification: bool = False
    layer_priority: list[Layer] = field(default_factory=list)
    fusion_method: FusionMethod = FusionMethod.WEIGHTED
    needs_expansion: bool = False

    def is_enabled(self, layer: Layer) -> bool:
        return {
            Layer.MEMORY: self.use_memory,
            Layer.WEB: self.use_web,
            Layer.VECTOR: self.use_vector,
            Layer.GRAPH: self.use_graph,
        }[layer]

    @property
    def enabled_layers(self) -> list[Layer]:
        """Enabled layers, in priority order."""
        ordered = [layer for layer in self.layer_priority if self.is_enabled(layer)]
        # Layers enabled but missing from the priority list go last, canonical order
        ordered += [l for l in Layer if self.is_enabled(l) and l not in ordered]
        return ordered


# =============================================================================
# Layer Results
# =============================================================================


@dataclass
class MemoryProvenance:
    user_id: str
    thread_id: str | None = None
    priority: float = 0.0
    tier: str | None = None


@dataclass
class MemoryResult:
    id: str
    content: str
    relevance_score: float
    created_at: int | None
    provenance: MemoryProvenance

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "relevanceScore": self.relevance_score,
            "createdAt": self.created_at,
            "source": {
                "userId": self.provenance.user_id,
                "threadId": self.provenance.thread_id,
                "priority": self.provenance.priority,
                "tier": self.provenance.tier,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MemoryResult:
        source = data.get("source") or {}
        return cls(
            id=data["id"],
            content=data["content"],
            relevance_score=data["relevanceScore"],
            created_at=data.get("createdAt"),
            provenance=MemoryProvenance(
                user_id=source.get("userId", ""),
                thread_id=source.get("threadId"),
                priority=source.get("priority", 0.0),
                tier=source.get("tier"),
            ),
        )


@dataclass
class WebSource:
    url: str
    host: str
    tier: str
    date: str | None = None


@dataclass
class WebResult:
    content: str
    source: WebSource
    relevance_score: float
    fetched_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "source": {
                "url": self.source.url,
                "host": self.source.host,
                "date": self.source.date,
                "tier": self.source.tier,
            },
            "relevanceScore": self.relevance_score,
            "fetchedAt": self.fetched_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WebResult:
        source = data["source"]
        return cls(
            content=data["content"],
            source=WebSource(
                url=source["url"],
                host=source["host"],
                tier=source["tier"],
                date=source.get("date"),
            ),
            relevance_score=data["relevanceScore"],
            fetched_at=data["fetchedAt"],
        )


@dataclass
class VectorResult:
    content: str
    source: dict[str, Any]
    similarity: float
    embedding_id: str
    retrieved_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "source": self.source,
            "similarity": self.similarity,
            "embeddingId": self.embedding_id,
            "retrievedAt": self.retrieved_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VectorResult:
        return cls(
            content=data["content"],
            source=data.get("source") or {},
            similarity=data["similarity"],
            embedding_id=data["embeddingId"],
            retrieved_at=data["retrievedAt"],
        )


@dataclass
class GraphPath:
    """Placeholder for graph traversal output. Never populated yet."""

    memories: list[MemoryResult] = field(default_factory=list)
    relationships: list[dict[str, Any]] = field(default_factory=list)
    relevance: float = 0.0
    coherence: float = 0.0
    reasoning: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "memories": [m.to_dict() for m in self.memories],
            "relationships": self.relationships,
            "relevance": self.relevance,
            "coherence": self.coherence,
            "reasoning": self.reasoning,
        }


LayerResult = MemoryResult | WebResult | VectorResult | GraphPath


# =============================================================================
# Response
# =============================================================================


@dataclass
class LayerResults:
    """Per-layer result lists. Each list may be empty, never None."""

    memory: list[MemoryResult] = field(default_factory=list)
    web: list[WebResult] = field(default_factory=list)
    vector: list[VectorResult] = field(default_factory=list)
    graph: list[GraphPath] = field(default_factory=list)

    @property
    def scored_total(self) -> int:
        return len(self.memory) + len(self.web) + len(self.vector)


@dataclass
class VerificationSummary:
    """Stub until fact verification exists: nothing is verified."""

    verified_count: int = 0
    unverified_count: int = 0
    conflict_count: int = 0
    sources_verified: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "verifiedCount": self.verified_count,
            "unverifiedCount": self.unverified_count,
            "conflictCount": self.conflict_count,
            "sourcesVerified": self.sources_verified,
        }


@dataclass
class HybridResponse:
    """Aggregated answer to one query."""

    results: LayerResults
    fusion_method: FusionMethod
    confidence: float
    latency: int  # milliseconds
    layers_executed: list[Layer]
    verification: VerificationSummary = field(default_factory=VerificationSummary)
    conflicts: list[dict[str, Any]] = field(default_factory=list)
    query_expansion: list[str] = field(default_factory=list)
    cached: bool = False

    @property
    def layer_breakdown(self) -> dict[str, int]:
        return {
            Layer.MEMORY.value: len(self.results.memory),
            Layer.WEB.value: len(self.results.web),
            Layer.VECTOR.value: len(self.results.vector),
            Layer.GRAPH.value: len(self.results.graph),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "memories": [r.to_dict() for r in self.results.memory],
            "webResults": [r.to_dict() for r in self.results.web],
            "vectorResults": [r.to_dict() for r in self.results.vector],
            "graphPaths": [p.to_dict() for p in self.results.graph],
            "synthesis": {
                "totalResults": self.results.scored_total,
                "layerBreakdown": self.layer_breakdown,
                "fusionMethod": self.fusion_method.value,
            },
            "confidence": self.confidence,
            "verification": self.verification.to_dict(),
            "conflicts": list(self.conflicts),
            "queryExpansion": list(self.query_expansion),
            "strategy": self.fusion_method.value,
            "latency": self.latency,
            "layersExecuted": [layer.value for layer in self.layers_executed],
            "cached": self.cached,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HybridResponse:
        """Rebuild a response from its wire form (query cache hits)."""
        verification = data.get("verification") or {}
        return cls(
            results=LayerResults(
                memory=[MemoryResult.from_dict(r) for r in data.get("memories", [])],
                web=[WebResult.from_dict(r) for r in data.get("webResults", [])],
                vector=[VectorResult.from_dict(r) for r in data.get("vectorResults", [])],
                graph=[],
            ),
            fusion_method=FusionMethod(data["strategy"]),
            confidence=data["confidence"],
            latency=data.get("latency", 0),
            layers_executed=[Layer(v) for v in data.get("layersExecuted", [])],
            verification=VerificationSummary(
                verified_count=verification.get("verifiedCount", 0),
                unverified_count=verification.get("unverifiedCount", 0),
                conflict_count=verification.get("conflictCount", 0),
                sources_verified=verification.get("sourcesVerified", 0),
            ),
            conflicts=list(data.get("conflicts", [])),
            query_expansion=list(data.get("queryExpansion", [])),
            cached=bool(data.get("cached", False)),
        )
