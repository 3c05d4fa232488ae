"""Upstash Vector REST backend (server-side embedding of raw text)."""

from __future__ import annotations

import logging
from typing import Any, Sequence
from urllib.parse import quote

import requests

from doctalk.core.errors import VectorStoreError
from doctalk.ingest.types import Chunk, ChunkMetadata
from doctalk.vectorstore.base import SearchResult, VectorStore, batched

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
DEFAULT_BATCH_SIZE = 100


class UpstashVectorStore(VectorStore):
    def __init__(
        self,
        url: str,
        token: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
        session: requests.Session | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.batch_size = batch_size
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})

    def upsert_chunks(self, namespace_key: str, chunks: Sequence[Chunk]) -> None:
        for batch in batched(chunks, self.batch_size):
            body = [
                {"id": chunk.id, "data": chunk.text, "metadata": chunk.metadata.to_payload()}
                for chunk in batch
            ]
            self._call("POST", f"/upsert-data/{_ns(namespace_key)}", body, action="upsert chunks")

    def query_chunks(self, namespace_key: str, query: str, top_k: int) -> list[SearchResult]:
        body = {
            "data": query,
            "topK": top_k,
            "includeMetadata": True,
            "includeData": True,
            "includeVectors": False,
        }
        rows = self._call("POST", f"/query-data/{_ns(namespace_key)}", body, action="query vectors") or []
        results: list[SearchResult] = []
        for row in rows:
            if not row.get("metadata") or not row.get("data"):
                continue
            results.append(
                SearchResult(
                    id=str(row["id"]),
                    score=float(row.get("score", 0.0)),
                    text=row["data"],
                    metadata=ChunkMetadata.from_payload(row["metadata"]),
                )
            )
        return results

    def namespace_info(self, namespace_key: str) -> int:
        info = self._call("GET", "/info", None, action="get namespace info") or {}
        namespace = (info.get("namespaces") or {}).get(namespace_key) or {}
        return int(namespace.get("vectorCount", 0))

    def delete_namespace(self, namespace_key: str) -> None:
        self._call("DELETE", f"/delete-namespace/{_ns(namespace_key)}", None, action="delete namespace")

    def _call(self, method: str, path: str, body: Any, *, action: str) -> Any:
        try:
            response = self.session.request(method, f"{self.url}{path}", json=body, timeout=REQUEST_TIMEOUT)
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Vector store call %s %s failed: %s", method, path, exc)
            raise VectorStoreError(f"Failed to {action}: {exc}", cause=exc) from exc
        if not isinstance(payload, dict):
            raise VectorStoreError(f"Failed to {action}: unexpected response")
        if not response.ok or payload.get("error"):
            raise VectorStoreError(f"Failed to {action}: {payload.get('error') or response.status_code}")
        return payload.get("result")


def _ns(namespace_key: str) -> str:
    return quote(namespace_key, safe="")


__all__ = ["UpstashVectorStore"]
