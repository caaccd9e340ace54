"""Abstract base classes for model providers.

These define what query analysis, expansion and the vector layer need from
a completion model and an embedding model. Concrete providers live beside
this module; tests substitute fakes.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal


@dataclass
class ChatMessage:
    """A message in a conversation."""

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass
class ChatResponse:
    """Response from a chat completion."""

    content: str
    role: str = "assistant"
    finish_reason: str | None = None
    model: str | None = None
    usage: dict[str, int] | None = None  # tokens used

    # Timing
    latency_ms: float | None = None


_FENCED_JSON = re.compile(r"```(?:json)?\s*([\[{].*?[\]}])\s*```", re.DOTALL)
_BARE_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_BARE_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


def extract_json(content: str) -> Any | None:
    """Pull a JSON object or array out of a model reply.

    Tries a fenced ```json block, then the whole reply, then the outermost
    {...} or [...] span. Returns None if nothing parses.
    """
    match = _FENCED_JSON.search(content)
    candidates = [match.group(1)] if match else []
    candidates.append(content.strip())
    for pattern in (_BARE_OBJECT, _BARE_ARRAY):
        m = pattern.search(content)
        if m:
            candidates.append(m.group())

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


class LLMProvider(ABC):
    """Abstract interface for completion-model providers.

    The analyzer and expander depend on this interface, not concrete
    implementations.
    """

    @abstractmethod
    async def chat(
        self,
        messages: list[ChatMessage] | list[dict[str, Any]],
        *,
        system_prompt: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 500,
        response_format: dict[str, Any] | None = None,
    ) -> ChatResponse:
        """Complete a chat conversation.

        Args:
            messages: Conversation history
            system_prompt: Optional system prompt to prepend
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens in response
            response_format: Optional structured output format

        Returns:
            ChatResponse with the model's reply

        Raises:
            LLMError: If the provider call fails after retries
        """
        ...

    async def complete(
        self,
        prompt: str,
        *,
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> str:
        """Simple text completion (convenience wrapper around chat)."""
        response = await self.chat(
            messages=[{"role": "user", "content": prompt}],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.content

    async def chat_json(
        self,
        messages: list[ChatMessage] | list[dict[str, Any]],
        *,
        system_prompt: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.1,
    ) -> dict[str, Any]:
        """Chat with JSON output parsing.

        Returns:
            Dict with 'parsed' (the JSON value or None), 'content' (raw)
        """
        response = await self.chat(
            messages=messages,
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        return {
            "content": response.content,
            "parsed": extract_json(response.content),
        }


class EmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @property
    @abstractmethod
    def embedding_dimension(self) -> int:
        """Return the dimension of embeddings produced."""
        ...

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Raises:
            EmbeddingError: If the provider call fails
        """
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts, in order.

        Providers without a native batch call embed sequentially.
        """
        return [await self.embed(text) for text in texts]
