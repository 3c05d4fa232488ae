"""Search orchestration."""

from __future__ import annotations

import logging
import time

from doctalk.core.config import Settings, get_settings
from doctalk.core.metrics import RETRIEVAL_LATENCY
from doctalk.retrieval.rerank import rerank
from doctalk.vectorstore.base import SearchResult, VectorStore

logger = logging.getLogger(__name__)


class Retriever:
    """Fetch nearest chunks for a question and thin them with :func:`rerank`."""

    def __init__(self, store: VectorStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or get_settings()

    def retrieve(
        self,
        namespace_key: str,
        question: str,
        fetch_k: int | None = None,
        keep_k: int | None = None,
    ) -> list[SearchResult]:
        start_time = time.perf_counter()
        fetch_k = fetch_k or self.settings.top_k
        keep_k = keep_k or self.settings.rerank_top_k
        candidates = self.store.query_chunks(namespace_key, question, fetch_k)
        results = rerank(candidates, keep_k)
        RETRIEVAL_LATENCY.observe(time.perf_counter() - start_time)
        logger.debug(
            "Retrieved %s of %s candidates for namespace %s",
            len(results),
            len(candidates),
            namespace_key,
        )
        return results


__all__ = ["Retriever"]
