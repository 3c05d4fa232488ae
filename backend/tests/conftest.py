"""Test fixtures for DocTalk."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

_SERVICE_VARS = (
    "UPSTASH_VECTOR_REST_URL",
    "UPSTASH_VECTOR_REST_TOKEN",
    "OPENROUTER_API_KEY",
    "OPENROUTER_MODEL",
)


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset cached settings, singletons and environment between tests."""
    monkeypatch.setenv("DOCTALK_CONFIG", str(tmp_path / "missing.yaml"))
    for name in _SERVICE_VARS:
        monkeypatch.delenv(name, raising=False)

    from doctalk.api import dependencies as deps
    from doctalk.core.config import get_settings

    get_settings.cache_clear()
    deps.reset_singletons()
    yield
    get_settings.cache_clear()
    deps.reset_singletons()


@pytest.fixture
def make_result() -> Callable[..., "SearchResult"]:
    """Build search results with just enough metadata for ranking and citing."""
    from doctalk.ingest.types import ChunkMetadata
    from doctalk.vectorstore.base import SearchResult

    def _make(
        file_id: str,
        chunk_index: int,
        score: float,
        text: str = "chunk text",
        file_name: str | None = None,
        page_numbers: list[int] | None = None,
    ) -> SearchResult:
        metadata = ChunkMetadata(
            file_id=file_id,
            file_name=file_name or f"{file_id}.txt",
            file_url=f"https://drive.google.com/file/d/{file_id}/view",
            mime_type="text/plain",
            folder_id="folder1234567",
            chunk_index=chunk_index,
            total_chunks=10,
            page_numbers=page_numbers,
        )
        return SearchResult(id=f"{file_id}:{chunk_index}", score=score, text=text, metadata=metadata)

    return _make


@pytest.fixture(scope="session")
def sample_text() -> str:
    return "First paragraph.\n\nSecond paragraph.\n\nThird paragraph."
