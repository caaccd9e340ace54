"""Groq completion provider.

Fast hosted inference for the classification and expansion prompts.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any

from groq import AsyncGroq

from hybrid_rag.exceptions import LLMError

from .base import ChatMessage, ChatResponse, LLMProvider


@dataclass
class GroqConfig:
    """Configuration for the Groq provider."""

    api_key: str | None = None
    model: str = "llama-3.1-8b-instant"

    # Timeouts
    timeout_seconds: float = 10.0

    # Retries after the first attempt
    max_retries: int = 2
    retry_delay_seconds: float = 0.5


class GroqLLM(LLMProvider):
    """Groq provider with retry.

    Usage:
        llm = GroqLLM(GroqConfig(api_key="your-key"))

        response = await llm.chat(
            messages=[{"role": "user", "content": "Hello"}],
        )
        print(response.content)
    """

    def __init__(self, config: GroqConfig, client: AsyncGroq | None = None):
        if not config.api_key and client is None:
            raise ValueError("Groq API key required. Set GROQ_API_KEY or pass api_key.")
        self.config = config
        self._client = client

    @property
    def client(self) -> AsyncGroq:
        """Lazy-load the Groq client."""
        if self._client is None:
            self._client = AsyncGroq(
                api_key=self.config.api_key,
                timeout=self.config.timeout_seconds,
            )
        return self._client

    def _convert_messages(
        self,
        messages: list[ChatMessage] | list[dict[str, Any]],
        system_prompt: str | None = None,
    ) -> list[dict[str, Any]]:
        result = []
        if system_prompt:
            result.append({"role": "system", "content": system_prompt})
        for msg in messages:
            if isinstance(msg, ChatMessage):
                result.append({"role": msg.role, "content": msg.content})
            else:
                result.append(dict(msg))
        return result

    async def chat(
        self,
        messages: list[ChatMessage] | list[dict[str, Any]],
        *,
        system_prompt: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 500,
        response_format: dict[str, Any] | None = None,
    ) -> ChatResponse:
        start_time = time.time()

        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "messages": self._convert_messages(messages, system_prompt),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            kwargs["response_format"] = response_format

        # Make request with retries
        last_error: Exception | None = None
        attempts = max(0, self.config.max_retries) + 1
        for attempt in range(attempts):
            try:
                response = await self.client.chat.completions.create(**kwargs)
                break
            except Exception as e:
                last_error = e
                if attempt < attempts - 1:
                    await asyncio.sleep(self.config.retry_delay_seconds * (attempt + 1))
        else:
            raise LLMError(f"Groq request failed after {attempts} attempts", last_error)

        if not response.choices:
            raise LLMError("Groq returned no choices")

        choice = response.choices[0]
        latency_ms = (time.time() - start_time) * 1000

        return ChatResponse(
            content=choice.message.content or "",
            role=choice.message.role,
            finish_reason=choice.finish_reason,
            model=response.model,
            usage={
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
                "total_tokens": response.usage.total_tokens if response.usage else 0,
            },
            latency_ms=latency_ms,
        )
