"""Standard exception hierarchy for hybrid-rag.

All hybrid-rag exceptions inherit from HybridRAGError, making it easy
to catch all service-specific errors.

Exception Hierarchy:
    HybridRAGError (base)
    ├── ConfigurationError - Invalid configuration
    ├── RequestValidationError - Structurally invalid request (HTTP 400)
    └── ProviderError - Base for collaborator errors
        ├── LLMError - Completion model errors
        ├── EmbeddingError - Embedding provider errors
        ├── VectorStoreError - Vector index errors
        ├── MemoryServiceError - Memory recall errors
        ├── WebSearchError - Web search proxy errors
        └── CacheError - Remote cache tier errors

Only RequestValidationError (and anything unexpected) is meant to reach the
HTTP boundary. Provider errors are caught by the layer, cache or classifier
that owns the call.
"""


class HybridRAGError(Exception):
    """Base exception for all hybrid-rag errors.

    Catch this to handle any service-specific exception:
        try:
            response = await orchestrator.process_query(request)
        except HybridRAGError as e:
            logger.error(f"Hybrid RAG error: {e}")
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{super().__str__()} (caused by: {self.cause})"
        return super().__str__()


# =============================================================================
# Configuration / Request Errors
# =============================================================================


class ConfigurationError(HybridRAGError):
    """Invalid configuration.

    Raised when an environment variable cannot be parsed into the type
    its config field expects.
    """

    pass


class RequestValidationError(HybridRAGError):
    """A request is missing a required field or is malformed.

    Surfaced to HTTP callers as a 400. Never retried.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(HybridRAGError):
    """Base exception for collaborator-related errors."""

    pass


class LLMError(ProviderError):
    """Completion model call failed or returned an unusable reply."""

    pass


class EmbeddingError(ProviderError):
    """Embedding generation failed."""

    pass


class VectorStoreError(ProviderError):
    """Vector index search or maintenance failed."""

    pass


class MemoryServiceError(ProviderError):
    """Memory recall endpoint failed.

    Raised when:
    - The recall endpoint answers with a non-2xx status
    - The connection fails
    - The response body is not the expected shape
    """

    def __init__(
        self,
        message: str,
        status: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.status = status


class WebSearchError(ProviderError):
    """Web search proxy failed (any non-2xx other than 503)."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.status = status


class CacheError(ProviderError):
    """Remote cache tier is unreachable or rejected an operation."""

    pass
