"""Vector store backends and chunk metadata serialization."""

from __future__ import annotations

from typing import Any

import pytest

from doctalk.core.config import Settings
from doctalk.core.errors import VectorStoreError
from doctalk.ingest.types import Chunk, ChunkMetadata
from doctalk.vectorstore import (
    InMemoryVectorStore,
    UpstashVectorStore,
    get_namespace_key,
    get_vector_store,
)


def _meta(index: int = 0, pages: list[int] | None = None) -> ChunkMetadata:
    return ChunkMetadata(
        file_id="f1",
        file_name="report.pdf",
        file_url="https://drive.google.com/file/d/f1/view",
        mime_type="application/pdf",
        folder_id="folder1234567",
        chunk_index=index,
        total_chunks=3,
        page_numbers=pages,
    )


def _chunks(count: int) -> list[Chunk]:
    return [Chunk(id=f"f1:{idx}", text=f"chunk number {idx}", metadata=_meta(idx)) for idx in range(count)]


class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code
        self.ok = status_code < 400

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, *responses: FakeResponse) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, str, Any]] = []
        self._responses = list(responses)

    def request(self, method: str, url: str, json: Any = None, timeout: float | None = None) -> FakeResponse:
        self.calls.append((method, url, json))
        if self._responses:
            return self._responses.pop(0)
        return FakeResponse({"result": "Success"})


def test_namespace_key() -> None:
    assert get_namespace_key("user-1", "folder1234567") == "user-1:folder1234567"
    for user_id, folder_id in [("", "f"), ("u", ""), ("a:b", "f"), ("u", "f:g")]:
        with pytest.raises(VectorStoreError):
            get_namespace_key(user_id, folder_id)


def test_payload_round_trip_with_pages() -> None:
    payload = _meta(pages=[4, 5]).to_payload()
    assert payload["fileName"] == "report.pdf"
    assert payload["pageNumbers"] == [4, 5]
    assert payload["pageNumber"] == 4
    assert ChunkMetadata.from_payload(payload) == _meta(pages=[4, 5])


def test_payload_without_pages_reads_back_none() -> None:
    payload = _meta().to_payload()
    assert "pageNumber" not in payload
    assert ChunkMetadata.from_payload(payload).page_numbers is None


def test_payload_accepts_integral_floats_and_single_page() -> None:
    payload = _meta().to_payload()
    payload["chunkIndex"] = 2.0
    payload["pageNumber"] = 7
    metadata = ChunkMetadata.from_payload(payload)
    assert metadata.chunk_index == 2
    assert metadata.page_numbers == [7]
    assert metadata.page_number == 7


def test_payload_missing_required_field() -> None:
    payload = _meta().to_payload()
    del payload["fileUrl"]
    with pytest.raises(VectorStoreError):
        ChunkMetadata.from_payload(payload)


def test_memory_store_upsert_query_delete() -> None:
    store = InMemoryVectorStore()
    store.upsert_chunks("u:f", _chunks(3))
    store.upsert_chunks("u:f", _chunks(2))
    assert store.namespace_info("u:f") == 3
    assert store.namespace_info("u:other") == 0

    results = store.query_chunks("u:f", "chunk number 2", top_k=2)
    assert len(results) == 2
    assert results[0].id == "f1:2"
    assert results[0].metadata.chunk_index == 2

    store.delete_namespace("u:f")
    assert store.namespace_info("u:f") == 0
    assert store.query_chunks("u:f", "chunk", top_k=5) == []


def test_memory_store_isolates_namespaces() -> None:
    store = InMemoryVectorStore()
    store.upsert_chunks("u1:f", _chunks(1))
    assert store.query_chunks("u2:f", "chunk", top_k=5) == []


def test_upstash_upserts_in_batches() -> None:
    session = FakeSession()
    store = UpstashVectorStore("https://vec.example.com/", "secret", batch_size=100, session=session)
    store.upsert_chunks("u:f", _chunks(250))
    assert session.headers["Authorization"] == "Bearer secret"
    assert [len(body) for _, _, body in session.calls] == [100, 100, 50]
    method, url, body = session.calls[0]
    assert method == "POST"
    assert url == "https://vec.example.com/upsert-data/u%3Af"
    assert body[0]["id"] == "f1:0"
    assert body[0]["data"] == "chunk number 0"
    assert body[0]["metadata"]["chunkIndex"] == 0


def test_upstash_query_drops_incomplete_rows() -> None:
    rows = [
        {"id": "f1:1", "score": 0.9, "data": "text one", "metadata": _meta(1, pages=[2]).to_payload()},
        {"id": "f1:2", "score": 0.8, "data": "text two"},
        {"id": "f1:0", "score": 0.7, "metadata": _meta(0).to_payload()},
    ]
    session = FakeSession(FakeResponse({"result": rows}))
    store = UpstashVectorStore("https://vec.example.com", "secret", session=session)
    results = store.query_chunks("u:f", "question", top_k=3)
    assert [r.id for r in results] == ["f1:1"]
    assert results[0].metadata.page_numbers == [2]
    assert session.calls[0][2]["topK"] == 3


def test_upstash_namespace_info() -> None:
    info = {"result": {"vectorCount": 9, "namespaces": {"u:f": {"vectorCount": 4}}}}
    store = UpstashVectorStore("https://vec.example.com", "secret", session=FakeSession(FakeResponse(info), FakeResponse(info)))
    assert store.namespace_info("u:f") == 4
    assert store.namespace_info("u:missing") == 0


def test_upstash_errors_raise_vector_store_error() -> None:
    session = FakeSession(FakeResponse({"error": "Unauthorized"}, status_code=401), FakeResponse(ValueError("not json")))
    store = UpstashVectorStore("https://vec.example.com", "secret", session=session)
    with pytest.raises(VectorStoreError):
        store.delete_namespace("u:f")
    with pytest.raises(VectorStoreError):
        store.namespace_info("u:f")


def test_get_vector_store_selects_backend() -> None:
    assert isinstance(get_vector_store(Settings()), InMemoryVectorStore)
    configured = Settings(vector_url="https://vec.example.com", vector_token="t")
    assert isinstance(get_vector_store(configured), UpstashVectorStore)
