"""Unified configuration for hybrid-rag.

HybridRAGConfig provides a clean way to configure all components:
- HTTP server and logging
- Completion model (query analysis / expansion)
- Embedding provider
- Vector index, memory service and web search endpoints
- Two-tier cache TTLs and bounds
- Agent tuning knobs and feature flags
"""

from dataclasses import dataclass, field
import os

from hybrid_rag.exceptions import ConfigurationError


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", e)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", e)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.lower() == "true"


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = 3002
    log_level: str = "INFO"
    max_concurrent_requests: int = 50

    service_name: str = "hybrid-rag"
    version: str = "0.1.0"


@dataclass
class LLMConfig:
    """Completion model used for query analysis and expansion."""

    provider: str = "groq"
    model: str = "llama-3.1-8b-instant"
    api_key: str | None = None
    timeout_seconds: float = 10.0
    max_retries: int = 2


@dataclass
class EmbeddingConfig:
    """Configuration for embeddings."""

    provider: str = "ollama"
    model: str = "nomic-embed-text"
    url: str = "http://localhost:11434"
    dimensions: int = 768
    batch_size: int = 50


@dataclass
class VectorConfig:
    """Configuration for the vector index (Qdrant)."""

    url: str = "http://localhost:6333"
    api_key: str | None = None
    collection: str = "world_knowledge"
    top_k: int = 10
    min_similarity: float = 0.6
    timeout: float = 5.0


@dataclass
class CacheConfig:
    """Two-tier cache settings. An empty redis_url means local-only."""

    redis_url: str | None = "redis://localhost:6379"
    embedding_ttl: int = 604800  # 7 days
    query_ttl: int = 3600
    local_max_entries: int = 1000


@dataclass
class MemoryServiceConfig:
    """Durable memory recall endpoint."""

    url: str = "http://localhost:3001"
    deadline_ms: int = 200


@dataclass
class WebSearchConfig:
    """Web search proxy endpoint."""

    url: str = "http://localhost:3001"
    timeout_seconds: float = 5.0


@dataclass
class AgentConfig:
    """Agent tuning knobs.

    max_hops, min_confidence and enable_multi_hop are reserved for graph
    traversal and are not read by the current retrieval path.
    """

    max_hops: int = 3
    min_confidence: float = 0.7
    enable_multi_hop: bool = False
    enable_query_expansion: bool = True


@dataclass
class FeatureFlags:
    """Feature switches."""

    query_cache: bool = True
    query_expansion: bool = True
    temporal_retrieval: bool = True
    graph_relationships: bool = True


@dataclass
class HybridRAGConfig:
    """Main configuration for hybrid-rag.

    Create from environment variables:
        config = HybridRAGConfig.from_env()

    Or specify directly:
        config = HybridRAGConfig(
            vector=VectorConfig(url="http://qdrant:6333"),
            cache=CacheConfig(redis_url=None),
        )
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    vector: VectorConfig = field(default_factory=VectorConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    memory: MemoryServiceConfig = field(default_factory=MemoryServiceConfig)
    web: WebSearchConfig = field(default_factory=WebSearchConfig)
    agent: AgentConfig = field(default_factory=AgentConfig)
    features: FeatureFlags = field(default_factory=FeatureFlags)

    @property
    def expansion_enabled(self) -> bool:
        return self.features.query_expansion and self.agent.enable_query_expansion

    @classmethod
    def from_env(cls) -> "HybridRAGConfig":
        """Load configuration from environment variables.

        Environment variables:
        - HYBRID_RAG_HOST, HYBRID_RAG_PORT (or PORT), LOG_LEVEL
        - MAX_CONCURRENT_REQUESTS
        - GROQ_API_KEY (or HYBRID_RAG_LLM_API_KEY), QUERY_EXPANSION_MODEL
        - OLLAMA_URL, EMBEDDING_MODEL, EMBEDDING_DIMENSIONS, EMBEDDING_BATCH_SIZE
        - QDRANT_URL, QDRANT_API_KEY, QDRANT_WORLD_KNOWLEDGE_COLLECTION
        - VECTOR_TOP_K, VECTOR_MIN_SIMILARITY
        - REDIS_URL (empty disables the remote tier)
        - EMBEDDING_CACHE_TTL_SECONDS, QUERY_CACHE_TTL_SECONDS, LOCAL_CACHE_MAX_ENTRIES
        - MEMORY_SERVICE_URL, MEMORY_DEADLINE_MS
        - WEB_SEARCH_URL (defaults to MEMORY_SERVICE_URL), WEB_SEARCH_TIMEOUT_SECONDS
        - AGENT_MAX_HOPS, AGENT_MIN_CONFIDENCE, AGENT_ENABLE_MULTI_HOP,
          AGENT_ENABLE_QUERY_EXPANSION
        - FEATURE_QUERY_CACHE, FEATURE_QUERY_EXPANSION,
          FEATURE_TEMPORAL_RETRIEVAL, FEATURE_GRAPH_RELATIONSHIPS

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        memory_url = os.getenv("MEMORY_SERVICE_URL", "http://localhost:3001")
        port = _env_int("HYBRID_RAG_PORT", _env_int("PORT", 3002))

        return cls(
            server=ServerConfig(
                host=os.getenv("HYBRID_RAG_HOST", "0.0.0.0"),
                port=port,
                log_level=os.getenv("LOG_LEVEL", "INFO"),
                max_concurrent_requests=_env_int("MAX_CONCURRENT_REQUESTS", 50),
            ),
            llm=LLMConfig(
                model=os.getenv("QUERY_EXPANSION_MODEL", "llama-3.1-8b-instant"),
                api_key=os.getenv("HYBRID_RAG_LLM_API_KEY") or os.getenv("GROQ_API_KEY"),
                timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", 10.0),
            ),
            embedding=EmbeddingConfig(
                model=os.getenv("EMBEDDING_MODEL", "nomic-embed-text"),
                url=os.getenv("OLLAMA_URL", "http://localhost:11434"),
                dimensions=_env_int("EMBEDDING_DIMENSIONS", 768),
                batch_size=_env_int("EMBEDDING_BATCH_SIZE", 50),
            ),
            vector=VectorConfig(
                url=os.getenv("QDRANT_URL", "http://localhost:6333"),
                api_key=os.getenv("QDRANT_API_KEY") or None,
                collection=os.getenv("QDRANT_WORLD_KNOWLEDGE_COLLECTION", "world_knowledge"),
                top_k=_env_int("VECTOR_TOP_K", 10),
                min_similarity=_env_float("VECTOR_MIN_SIMILARITY", 0.6),
            ),
            cache=CacheConfig(
                redis_url=os.getenv("REDIS_URL", "redis://localhost:6379") or None,
                embedding_ttl=_env_int("EMBEDDING_CACHE_TTL_SECONDS", 604800),
                query_ttl=_env_int("QUERY_CACHE_TTL_SECONDS", 3600),
                local_max_entries=_env_int("LOCAL_CACHE_MAX_ENTRIES", 1000),
            ),
            memory=MemoryServiceConfig(
                url=memory_url,
                deadline_ms=_env_int("MEMORY_DEADLINE_MS", 200),
            ),
            web=WebSearchConfig(
                url=os.getenv("WEB_SEARCH_URL", memory_url),
                timeout_seconds=_env_float("WEB_SEARCH_TIMEOUT_SECONDS", 5.0),
            ),
            agent=AgentConfig(
                max_hops=_env_int("AGENT_MAX_HOPS", 3),
                min_confidence=_env_float("AGENT_MIN_CONFIDENCE", 0.7),
                enable_multi_hop=_env_bool("AGENT_ENABLE_MULTI_HOP", False),
                enable_query_expansion=_env_bool("AGENT_ENABLE_QUERY_EXPANSION", True),
            ),
            features=FeatureFlags(
                query_cache=_env_bool("FEATURE_QUERY_CACHE", True),
                query_expansion=_env_bool("FEATURE_QUERY_EXPANSION", True),
                temporal_retrieval=_env_bool("FEATURE_TEMPORAL_RETRIEVAL", True),
                graph_relationships=_env_bool("FEATURE_GRAPH_RELATIONSHIPS", True),
            ),
        )

    @classmethod
    def default(cls) -> "HybridRAGConfig":
        """Create a default configuration (same as no-arg constructor)."""
        return cls()
