"""Query expansion for short or underspecified queries."""

import json
import logging
import re

from hybrid_rag.llm.base import LLMProvider
from hybrid_rag.types import QueryContext

logger = logging.getLogger(__name__)

VAGUE_TOKENS = ("that", "thing", "stuff", "it", "them")
QUESTION_WORD_PATTERN = re.compile(r"what|when|where|why|how|which|who")
SHORT_QUERY_CHARS = 20
MAX_CONTEXT_TURNS = 3
MAX_EXPANSIONS = 5


def needs_expansion(query: str) -> bool:
    """Short, containing a space-bounded vague token, or lacking a question word."""
    lower_query = query.lower()
    if len(query) < SHORT_QUERY_CHARS:
        return True
    if any(f" {token} " in lower_query for token in VAGUE_TOKENS):
        return True
    return QUESTION_WORD_PATTERN.search(lower_query) is None


class QueryExpander:
    """Rewrites vague queries into more specific variants.

    The original query is always first in the returned list. Any model
    failure returns just [query].
    """

    SYSTEM_PROMPT = (
        "Generate 3-5 expanded query variations that are more specific versions "
        "of the given query. Return as JSON array of strings."
    )

    def __init__(self, llm: LLMProvider | None = None):
        self.llm = llm

    def build_prompt(self, query: str, context: QueryContext | None = None) -> str:
        prompt = f'Original query: "{query}"\n\nGenerate 3-5 more specific variations.\n'

        if context and context.recent_messages:
            recent = "\n".join(
                f"{m.role}: {m.content}" for m in context.recent_messages[-MAX_CONTEXT_TURNS:]
            )
            prompt += f"\nRecent conversation:\n{recent}\n"

        if context and context.user_preferences:
            prompt += f"\nUser context: {json.dumps(context.user_preferences)}\n"

        prompt += '\nReturn JSON: {"queries": ["variation1", "variation2", ...]}'
        return prompt

    async def expand(self, query: str, context: QueryContext | None = None) -> list[str]:
        if self.llm is None or not needs_expansion(query):
            return [query]

        try:
            result = await self.llm.chat_json(
                messages=[{"role": "user", "content": self.build_prompt(query, context)}],
                system_prompt=self.SYSTEM_PROMPT,
                temperature=0.5,
            )
        except Exception as e:
            logger.warning(f"Query expansion failed, using original: {e}")
            return [query]

        parsed = result.get("parsed")
        if isinstance(parsed, dict):
            parsed = parsed.get("queries")
        if not isinstance(parsed, list):
            logger.warning("Query expansion returned no query list, using original")
            return [query]

        expansions: list[str] = []
        for candidate in parsed:
            if not isinstance(candidate, str):
                continue
            candidate = candidate.strip()
            if candidate and candidate != query and candidate not in expansions:
                expansions.append(candidate)

        logger.debug(f"Expanded {query!r} into {len(expansions)} variations")
        return [query, *expansions[:MAX_EXPANSIONS]]
