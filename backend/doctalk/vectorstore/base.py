"""Vector store abstraction."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from doctalk.core.errors import VectorStoreError
from doctalk.ingest.types import Chunk, ChunkMetadata

NAMESPACE_SEPARATOR = ":"


@dataclass(slots=True)
class SearchResult:
    id: str
    score: float
    text: str
    metadata: ChunkMetadata


def get_namespace_key(user_id: str, folder_id: str) -> str:
    """Build the per user-folder namespace key."""
    if not user_id or not folder_id:
        raise VectorStoreError("Invalid namespace key components")
    if NAMESPACE_SEPARATOR in user_id or NAMESPACE_SEPARATOR in folder_id:
        raise VectorStoreError("Invalid namespace key components")
    return f"{user_id}{NAMESPACE_SEPARATOR}{folder_id}"


class VectorStore(ABC):
    """Black-box k-nearest-neighbour store keyed by namespace and chunk id."""

    @abstractmethod
    def upsert_chunks(self, namespace_key: str, chunks: Sequence[Chunk]) -> None:
        """Insert or overwrite chunks by id."""

    @abstractmethod
    def query_chunks(self, namespace_key: str, query: str, top_k: int) -> list[SearchResult]:
        """Return up to ``top_k`` chunks most similar to ``query``."""

    @abstractmethod
    def namespace_info(self, namespace_key: str) -> int:
        """Return the number of vectors stored in the namespace."""

    @abstractmethod
    def delete_namespace(self, namespace_key: str) -> None:
        """Drop every vector in the namespace."""


def batched(chunks: Sequence[Chunk], size: int) -> list[Sequence[Chunk]]:
    return [chunks[start : start + size] for start in range(0, len(chunks), size)]


__all__ = ["SearchResult", "VectorStore", "get_namespace_key", "batched", "NAMESPACE_SEPARATOR"]
