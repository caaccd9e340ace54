"""Factory functions for creating model providers from configuration."""

import logging

from hybrid_rag.config import EmbeddingConfig, LLMConfig

from .base import EmbeddingProvider, LLMProvider

logger = logging.getLogger(__name__)


def create_llm(config: LLMConfig) -> LLMProvider | None:
    """Create the completion provider, or None when no credentials exist.

    Without a provider the analyzer runs rules-only and the expander
    returns the original query unchanged.

    Examples:
        llm = create_llm(LLMConfig(api_key="your-key"))
    """
    if config.provider == "groq":
        if not config.api_key:
            logger.warning("No GROQ_API_KEY set; query analysis runs rules-only")
            return None
        from .groq import GroqConfig, GroqLLM

        return GroqLLM(
            GroqConfig(
                api_key=config.api_key,
                model=config.model,
                timeout_seconds=config.timeout_seconds,
                max_retries=config.max_retries,
            )
        )

    raise ValueError(f"Unknown LLM provider: {config.provider}")


def create_embedder(config: EmbeddingConfig) -> EmbeddingProvider:
    """Create the embedding provider."""
    if config.provider == "ollama":
        from .ollama import OllamaConfig, OllamaEmbedder

        return OllamaEmbedder(
            OllamaConfig(
                base_url=config.url,
                embedding_model=config.model,
                dimensions=config.dimensions,
            )
        )

    raise ValueError(f"Unknown embedding provider: {config.provider}")
