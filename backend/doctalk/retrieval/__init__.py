"""Retrieval orchestration components."""

from .rerank import rerank
from .search import Retriever

__all__ = [
    "Retriever",
    "rerank",
]
