"""HTTP client for the web search proxy."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from hybrid_rag.exceptions import WebSearchError
from hybrid_rag.storage.memory_client import SERVICE_HEADER

logger = logging.getLogger(__name__)


@dataclass
class WebSearchHit:
    title: str
    host: str
    snippet: str = ""
    date: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WebSearchHit":
        return cls(
            title=str(data.get("title") or ""),
            host=str(data.get("host") or ""),
            snippet=str(data.get("snippet") or ""),
            date=data.get("date"),
        )


@dataclass
class WebSearchResponse:
    query: str
    results: list[WebSearchHit] = field(default_factory=list)
    summary: str | None = None


class WebSearchClient:
    """POST keyword searches to the web search proxy.

    A 503 means search is switched off upstream and is reported as an
    empty response, not an error.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 5.0,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def search(
        self,
        query: str,
        thread_id: str | None = None,
        user_id: str | None = None,
    ) -> WebSearchResponse:
        """Run one search.

        Raises:
            WebSearchError: On timeout, connection failure or a non-2xx
                status other than 503
        """
        body: dict[str, Any] = {"query": query}
        if thread_id:
            body["threadId"] = thread_id

        url = f"{self.base_url}/v1/web-search"
        try:
            async with self._get_session().post(
                url,
                json=body,
                headers={**SERVICE_HEADER, "x-user-id": user_id or ""},
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as resp:
                logger.debug(f"Web search response {resp.status} from {url}")
                if resp.status == 503:
                    logger.debug("Web search not available (service disabled or no API key)")
                    return WebSearchResponse(query=query)
                if resp.status < 200 or resp.status >= 300:
                    raise WebSearchError(f"Web search returned {resp.status}", status=resp.status)
                data = await resp.json()
        except asyncio.TimeoutError as e:
            raise WebSearchError(f"Web search timed out after {self.timeout_seconds}s", cause=e)
        except aiohttp.ClientError as e:
            raise WebSearchError("Web search request failed", cause=e)

        if not isinstance(data, dict):
            raise WebSearchError("Malformed web search response")

        return WebSearchResponse(
            query=data.get("query") or query,
            results=[
                WebSearchHit.from_dict(r)
                for r in data.get("results") or []
                if isinstance(r, dict)
            ],
            summary=data.get("summary"),
        )

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
