"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from doctalk.core.errors import VectorStoreError


@dataclass(slots=True, frozen=True)
class PageOffset:
    """Character position in extracted text where a source page begins."""

    page_number: int
    start_offset: int


@dataclass(slots=True)
class ExtractionResult:
    """Text extracted from a single file, or the reason it was skipped."""

    text: str
    skipped: bool = False
    reason: str | None = None
    page_offsets: list[PageOffset] | None = None

    @classmethod
    def skip(cls, reason: str) -> "ExtractionResult":
        return cls(text="", skipped=True, reason=reason)


@dataclass(slots=True)
class DocumentMetadata:
    file_id: str
    file_name: str
    file_url: str
    mime_type: str
    folder_id: str


_REQUIRED_PAYLOAD_FIELDS: tuple[tuple[str, str, type], ...] = (
    ("file_id", "fileId", str),
    ("file_name", "fileName", str),
    ("file_url", "fileUrl", str),
    ("mime_type", "mimeType", str),
    ("folder_id", "folderId", str),
    ("chunk_index", "chunkIndex", int),
    ("total_chunks", "totalChunks", int),
)


@dataclass(slots=True)
class ChunkMetadata:
    """Provenance stored alongside every chunk in the vector store."""

    file_id: str
    file_name: str
    file_url: str
    mime_type: str
    folder_id: str
    chunk_index: int
    total_chunks: int
    page_numbers: list[int] | None = None

    @property
    def page_number(self) -> int | None:
        return self.page_numbers[0] if self.page_numbers else None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the store's generic key/value metadata."""
        payload: dict[str, Any] = {
            camel: getattr(self, attr) for attr, camel, _ in _REQUIRED_PAYLOAD_FIELDS
        }
        if self.page_numbers:
            payload["pageNumbers"] = list(self.page_numbers)
            payload["pageNumber"] = self.page_numbers[0]
        return payload

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ChunkMetadata":
        """Validate and decode metadata read back from the store."""
        values: dict[str, Any] = {}
        for attr, camel, expected in _REQUIRED_PAYLOAD_FIELDS:
            value = payload.get(camel)
            if expected is int and isinstance(value, float) and value.is_integer():
                value = int(value)
            if not isinstance(value, expected) or isinstance(value, bool):
                raise VectorStoreError(f"Chunk metadata field '{camel}' is missing or invalid")
            values[attr] = value

        page_numbers = payload.get("pageNumbers")
        if page_numbers is None and payload.get("pageNumber") is not None:
            page_numbers = [payload["pageNumber"]]
        if page_numbers is not None:
            if not isinstance(page_numbers, list) or not all(isinstance(n, (int, float)) for n in page_numbers):
                raise VectorStoreError("Chunk metadata field 'pageNumbers' is invalid")
            page_numbers = [int(n) for n in page_numbers] or None
        return cls(**values, page_numbers=page_numbers)


@dataclass(slots=True)
class Chunk:
    """Chunk produced by the assembler prior to persistence."""

    id: str
    text: str
    metadata: ChunkMetadata


@dataclass(slots=True)
class IngestStats:
    """Aggregated ingest statistics."""

    total_files: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    chunks: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total_files": self.total_files,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "chunks": self.chunks,
        }


__all__ = [
    "PageOffset",
    "ExtractionResult",
    "DocumentMetadata",
    "ChunkMetadata",
    "Chunk",
    "IngestStats",
]
