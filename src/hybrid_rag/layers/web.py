"""Web layer: live keyword search with heuristic relevance scoring.

Scoring and authority tiers are explicit ordered tables so each rule can be
tested on its own.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable

from hybrid_rag.storage.web_search import WebSearchClient, WebSearchHit
from hybrid_rag.types import HybridRequest, Layer, WebResult, WebSource

from .base import RetrievalLayer, clamp_score, now_ms

logger = logging.getLogger(__name__)


# =============================================================================
# Relevance scoring
# =============================================================================

BASE_SCORE = 0.5

AUTHORITATIVE_HOSTS = (
    "reuters", "bbc", "nytimes", "wsj", "bloomberg", "theguardian",
    "nature", "science", "arxiv", "nasa", "nih", "gov", "edu",
)


def query_words(query: str) -> list[str]:
    return query.lower().split()


def _fraction_matched(text: str, words: list[str]) -> float:
    if not words:
        return 0.0
    text = text.lower()
    return sum(1 for w in words if w in text) / len(words)


def title_match(hit: WebSearchHit, words: list[str]) -> float:
    return 0.3 * _fraction_matched(hit.title, words)


def snippet_match(hit: WebSearchHit, words: list[str]) -> float:
    # Short snippets carry too little text to count
    if len(hit.snippet) <= 50:
        return 0.0
    return 0.15 * _fraction_matched(hit.snippet, words)


def recency(hit: WebSearchHit, words: list[str]) -> float:
    if not hit.date:
        return 0.0
    date = hit.date.lower()
    if "hour" in date or "minute" in date:
        return 0.1
    if "day" in date:
        return 0.05
    return 0.0


def authority(hit: WebSearchHit, words: list[str]) -> float:
    host = hit.host.lower()
    return 0.1 if any(domain in host for domain in AUTHORITATIVE_HOSTS) else 0.0


@dataclass(frozen=True)
class ScoreRule:
    name: str
    score: Callable[[WebSearchHit, list[str]], float]


SCORE_RULES: tuple[ScoreRule, ...] = (
    ScoreRule("title_match", title_match),
    ScoreRule("snippet_match", snippet_match),
    ScoreRule("recency", recency),
    ScoreRule("authority", authority),
)


def score_hit(hit: WebSearchHit, query: str) -> float:
    """Base score plus every rule's bonus, capped at 1.0."""
    words = query_words(query)
    total = BASE_SCORE + sum(rule.score(hit, words) for rule in SCORE_RULES)
    return clamp_score(total)


# =============================================================================
# Authority tiers
# =============================================================================

TIER_TABLE: tuple[tuple[re.Pattern, str], ...] = (
    (
        re.compile(
            r"(reuters|apnews|bbc|ft|wsj|bloomberg|nytimes|theguardian|nature"
            r"|science|arxiv|nasa|who|nih|ecdc|ec\.europa)"
        ),
        "tier1",
    ),
    (
        re.compile(
            r"(theverge|techcrunch|wired|engadget|zdnet|infoq|anandtech"
            r"|semianalysis|financialpost|investors|seekingalpha)"
        ),
        "tier2",
    ),
)
DEFAULT_TIER = "tier3"


def determine_tier(host: str) -> str:
    host = host.lower()
    for pattern, tier in TIER_TABLE:
        if pattern.search(host):
            return tier
    return DEFAULT_TIER


# =============================================================================
# Layer
# =============================================================================


class WebLayer(RetrievalLayer):
    """Adapts web search hits into scored, tier-tagged results."""

    def __init__(self, client: WebSearchClient):
        self.client = client

    @property
    def layer(self) -> Layer:
        return Layer.WEB

    async def retrieve(self, request: HybridRequest) -> list[WebResult]:
        try:
            response = await self.client.search(
                request.query,
                thread_id=request.thread_id,
                user_id=request.user_id,
            )
        except Exception as e:
            logger.warning(f"Web retrieval failed: {e}")
            return []

        fetched_at = now_ms()
        results = [
            WebResult(
                content=hit.snippet or hit.title,
                source=WebSource(
                    url=f"https://{hit.host}",
                    host=hit.host,
                    tier=determine_tier(hit.host),
                    date=hit.date,
                ),
                relevance_score=score_hit(hit, request.query),
                fetched_at=fetched_at,
            )
            for hit in response.results
        ]
        logger.info(f"Web layer returned {len(results)} results")
        return results
