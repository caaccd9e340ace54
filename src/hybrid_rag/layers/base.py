"""Retrieval layer interface."""

import time
from abc import ABC, abstractmethod

from hybrid_rag.types import HybridRequest, Layer, LayerResult


def now_ms() -> int:
    """Wall-clock epoch milliseconds, used for result timestamps."""
    return int(time.time() * 1000)


def clamp_score(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class RetrievalLayer(ABC):
    """Base class for retrieval layers.

    retrieve() must never raise: timeouts, malformed replies and
    collaborator errors are logged at warning and reported as [].
    """

    @property
    @abstractmethod
    def layer(self) -> Layer:
        """Return the layer this retriever serves."""
        ...

    @abstractmethod
    async def retrieve(self, request: HybridRequest) -> list[LayerResult]:
        """Retrieve results for one request."""
        ...

    async def health(self) -> bool:
        return True
