"""HTTP client for the durable memory service's recall endpoint."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from hybrid_rag.exceptions import MemoryServiceError

logger = logging.getLogger(__name__)

SERVICE_HEADER = {"x-internal-service": "hybrid-rag"}


@dataclass
class MemoryRecord:
    """One recalled memory as the memory service reports it."""

    id: str
    user_id: str
    content: str
    priority: float = 0.0
    thread_id: str | None = None
    tier: str | None = None
    created_at: int | None = None
    updated_at: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MemoryRecord":
        return cls(
            id=str(data["id"]),
            user_id=str(data.get("userId", "")),
            content=str(data.get("content", "")),
            priority=float(data.get("priority") or 0.0),
            thread_id=data.get("threadId"),
            tier=data.get("tier"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


@dataclass
class MemoryRecallResponse:
    memories: list[MemoryRecord] = field(default_factory=list)
    count: int = 0
    elapsed_ms: int = 0
    timed_out: bool = False


class MemoryServiceClient:
    """Recall memories over HTTP.

    Usage:
        client = MemoryServiceClient("http://memory-service:3001")
        response = await client.recall("user-1", thread_id="t-9", max_items=10)
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        default_deadline_ms: int = 200,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_deadline_ms = default_deadline_ms
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def recall(
        self,
        user_id: str | None,
        thread_id: str | None = None,
        max_items: int | None = None,
        deadline_ms: int | None = None,
    ) -> MemoryRecallResponse:
        """Recall memories for one user.

        Args:
            user_id: Owning user. Without it nothing is recalled.
            thread_id: Optional thread scope
            max_items: Upper bound on returned memories
            deadline_ms: Time bound for the call; exceeding it yields
                an empty response with timed_out=True

        Raises:
            MemoryServiceError: On a non-2xx status, connection failure or
                an unexpected response body
        """
        if not user_id:
            logger.debug("No userId provided, returning empty memories")
            return MemoryRecallResponse()

        deadline_ms = deadline_ms or self.default_deadline_ms
        params: dict[str, str] = {"userId": user_id, "deadlineMs": str(deadline_ms)}
        if thread_id:
            params["threadId"] = thread_id
        if max_items:
            params["maxItems"] = str(max_items)

        session = self._get_session()
        try:
            async with session.get(
                f"{self.base_url}/v1/recall",
                params=params,
                headers={**SERVICE_HEADER, "x-user-id": user_id},
                timeout=aiohttp.ClientTimeout(total=deadline_ms / 1000),
            ) as resp:
                if resp.status < 200 or resp.status >= 300:
                    raise MemoryServiceError(
                        f"Memory service returned {resp.status}", status=resp.status
                    )
                data = await resp.json()
        except asyncio.TimeoutError:
            logger.warning(f"Memory recall exceeded {deadline_ms}ms deadline")
            return MemoryRecallResponse(elapsed_ms=deadline_ms, timed_out=True)
        except aiohttp.ClientError as e:
            raise MemoryServiceError("Memory service request failed", cause=e)

        try:
            memories = [MemoryRecord.from_dict(m) for m in data.get("memories") or []]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MemoryServiceError("Malformed recall response", cause=e)

        logger.debug(f"Recalled {len(memories)} memories in {data.get('elapsedMs', 0)}ms")
        return MemoryRecallResponse(
            memories=memories,
            count=int(data.get("count", len(memories))),
            elapsed_ms=int(data.get("elapsedMs", 0)),
            timed_out=bool(data.get("timedOut", False)),
        )

    async def health(self) -> bool:
        try:
            async with self._get_session().get(
                f"{self.base_url}/health",
                timeout=aiohttp.ClientTimeout(total=1),
            ) as resp:
                return resp.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Memory service health check failed: {e}")
            return False

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
