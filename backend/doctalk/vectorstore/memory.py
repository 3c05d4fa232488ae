"""In-process vector store with hashed bag-of-words embeddings."""

from __future__ import annotations

import hashlib
import logging
import math
import re
import threading
from dataclasses import dataclass
from typing import Sequence

from doctalk.ingest.types import Chunk
from doctalk.vectorstore.base import SearchResult, VectorStore

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")
DEFAULT_DIM = 384


class HashedEmbedder:
    """Deterministic hashed embedding, good enough for local runs and tests."""

    def __init__(self, dim: int = DEFAULT_DIM) -> None:
        self.dim = dim

    def encode(self, text: str) -> list[float]:
        vector = [0.0] * self.dim
        for token in _TOKEN_RE.findall(text.lower()):
            vector[_hash_token(token, self.dim)] += 1.0
        _normalize(vector)
        return vector


@dataclass(slots=True)
class _Entry:
    chunk: Chunk
    vector: list[float]


class InMemoryVectorStore(VectorStore):
    """Namespace -> chunk id -> entry; re-upserting an id overwrites it."""

    def __init__(self, embedder: HashedEmbedder | None = None) -> None:
        self.embedder = embedder or HashedEmbedder()
        self._namespaces: dict[str, dict[str, _Entry]] = {}
        self._lock = threading.Lock()

    def upsert_chunks(self, namespace_key: str, chunks: Sequence[Chunk]) -> None:
        if not chunks:
            return
        entries = {chunk.id: _Entry(chunk=chunk, vector=self.embedder.encode(chunk.text)) for chunk in chunks}
        with self._lock:
            self._namespaces.setdefault(namespace_key, {}).update(entries)
        logger.debug("Upserted %s chunks into %s", len(entries), namespace_key)

    def query_chunks(self, namespace_key: str, query: str, top_k: int) -> list[SearchResult]:
        with self._lock:
            entries = list(self._namespaces.get(namespace_key, {}).values())
        if not entries:
            return []
        query_vector = self.embedder.encode(query)
        scored = sorted(
            ((_dot(entry.vector, query_vector), entry) for entry in entries),
            key=lambda item: item[0],
            reverse=True,
        )
        return [
            SearchResult(id=entry.chunk.id, score=score, text=entry.chunk.text, metadata=entry.chunk.metadata)
            for score, entry in scored[:top_k]
        ]

    def namespace_info(self, namespace_key: str) -> int:
        with self._lock:
            return len(self._namespaces.get(namespace_key, {}))

    def delete_namespace(self, namespace_key: str) -> None:
        with self._lock:
            self._namespaces.pop(namespace_key, None)


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


def _dot(a: Sequence[float], b: Sequence[float]) -> float:
    return sum(x * y for x, y in zip(a, b))


__all__ = ["HashedEmbedder", "InMemoryVectorStore"]
