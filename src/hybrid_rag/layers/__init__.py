"""Retrieval layers: one adapter per knowledge source."""

from hybrid_rag.layers.base import RetrievalLayer
from hybrid_rag.layers.graph import GraphLayer
from hybrid_rag.layers.memory import MemoryLayer
from hybrid_rag.layers.vector import VectorLayer
from hybrid_rag.layers.web import WebLayer, determine_tier, score_hit

__all__ = [
    "GraphLayer",
    "MemoryLayer",
    "RetrievalLayer",
    "VectorLayer",
    "WebLayer",
    "determine_tier",
    "score_hit",
]
