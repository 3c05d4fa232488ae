"""Chunk persistence and similarity search backends."""

from doctalk.core.config import Settings
from doctalk.vectorstore.base import SearchResult, VectorStore, get_namespace_key
from doctalk.vectorstore.memory import InMemoryVectorStore
from doctalk.vectorstore.upstash import UpstashVectorStore


def get_vector_store(settings: Settings) -> VectorStore:
    """Use Upstash when credentials are configured, else an in-process store."""
    if settings.vector_configured:
        return UpstashVectorStore(
            url=settings.vector_url,
            token=settings.vector_token,
            batch_size=settings.upsert_batch_size,
        )
    return InMemoryVectorStore()


__all__ = [
    "SearchResult",
    "VectorStore",
    "InMemoryVectorStore",
    "UpstashVectorStore",
    "get_namespace_key",
    "get_vector_store",
]
