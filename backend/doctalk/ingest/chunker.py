"""Chunking utilities."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Sequence

from doctalk.core.config import get_settings
from doctalk.ingest.types import Chunk, ChunkMetadata, DocumentMetadata, PageOffset

# Leading characters of a chunk used to find where it starts in the source text.
LOCATE_PREFIX_CHARS = 50


@dataclass(slots=True, frozen=True)
class SplitterConfig:
    chunk_size: int
    chunk_overlap: int
    separators: tuple[str, ...]


class RecursiveTextSplitter:
    """Split text into bounded, optionally overlapping chunks.

    Separators are tried in priority order (paragraph, line, sentence, word,
    character by default). A piece that is still too long after splitting on
    one separator is split again with the next one. An empty-string separator
    splits into single characters, so any text can be brought under
    ``chunk_size`` as long as ``""`` is in the list.

    A separator that falls exactly on a chunk boundary is consumed and not
    kept in either neighbour. Whitespace separators lose nothing, but with
    ``". "`` the period at the boundary is dropped. Overlap is added once,
    after the recursive split, by prepending the previous chunk's tail when
    the result still fits in ``chunk_size``.
    """

    def __init__(
        self,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        separators: Sequence[str] | None = None,
    ) -> None:
        settings = get_settings()
        config = SplitterConfig(
            chunk_size=settings.chunk_size if chunk_size is None else chunk_size,
            chunk_overlap=settings.chunk_overlap if chunk_overlap is None else chunk_overlap,
            separators=tuple(settings.separators if separators is None else separators),
        )
        if config.chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        if config.chunk_overlap < 0:
            raise ValueError("chunk_overlap cannot be negative")
        self.config = config

    def split(self, text: str) -> list[str]:
        return self._merge_with_overlap(self._split_text(text, 0))

    def _split_text(self, text: str, separator_index: int) -> list[str]:
        chunk_size = self.config.chunk_size
        if len(text) <= chunk_size:
            return [text] if text.strip() else []

        if separator_index >= len(self.config.separators):
            # Out of separators: keep the oversized piece rather than drop it.
            return [text]
        separator = self.config.separators[separator_index]
        parts = list(text) if separator == "" else text.split(separator)

        chunks: list[str] = []
        current = ""
        for part in parts:
            candidate = part if current == "" else current + separator + part
            if len(candidate) <= chunk_size:
                current = candidate
                continue

            if current.strip():
                chunks.append(current)
            if len(part) > chunk_size:
                chunks.extend(self._split_text(part, separator_index + 1))
                current = ""
            else:
                current = part

        if current.strip():
            chunks.append(current)
        return chunks

    def _merge_with_overlap(self, chunks: list[str]) -> list[str]:
        overlap = self.config.chunk_overlap
        if len(chunks) <= 1 or overlap == 0:
            return chunks

        merged_chunks = [chunks[0]]
        for previous, chunk in zip(chunks, chunks[1:]):
            merged = previous[-overlap:] + chunk
            merged_chunks.append(merged if len(merged) <= self.config.chunk_size else chunk)
        return merged_chunks


def chunk_document(
    text: str,
    metadata: DocumentMetadata,
    splitter: RecursiveTextSplitter | None = None,
    page_offsets: Sequence[PageOffset] | None = None,
) -> list[Chunk]:
    """Split a document and wrap each piece with stable id and provenance."""
    splitter = splitter or RecursiveTextSplitter()
    pieces = splitter.split(text)
    pages = (
        locate_pages(text, pieces, page_offsets, overlap=splitter.config.chunk_overlap)
        if page_offsets
        else [None] * len(pieces)
    )

    total = len(pieces)
    return [
        Chunk(
            id=f"{metadata.file_id}:{index}",
            text=piece,
            metadata=ChunkMetadata(
                file_id=metadata.file_id,
                file_name=metadata.file_name,
                file_url=metadata.file_url,
                mime_type=metadata.mime_type,
                folder_id=metadata.folder_id,
                chunk_index=index,
                total_chunks=total,
                page_numbers=page_numbers,
            ),
        )
        for index, (piece, page_numbers) in enumerate(zip(pieces, pages))
    ]


def locate_pages(
    text: str,
    pieces: Sequence[str],
    page_offsets: Sequence[PageOffset],
    overlap: int = 0,
) -> list[list[int] | None]:
    """Attribute each piece to the pages it spans.

    Overlap means a piece is not always a verbatim substring, so only its
    prefix is searched for, moving forward from the previous match. When the
    prefix straddles the seam between the borrowed tail and the piece's own
    text, the search is retried with the text after the first ``overlap``
    characters. Pieces that still cannot be found get ``None``.
    """
    offsets = sorted(page_offsets, key=lambda offset: offset.start_offset)
    if not offsets:
        return [None] * len(pieces)
    starts = [offset.start_offset for offset in offsets]
    cursor = 0
    attributed: list[list[int] | None] = []
    for piece in pieces:
        located = _find_piece(text, piece, cursor, overlap)
        if located is None:
            attributed.append(None)
            continue
        position, span = located
        cursor = position
        end = min(position + span, len(text)) - 1
        first = _page_index(starts, position)
        last = max(first, _page_index(starts, end))
        attributed.append([offsets[idx].page_number for idx in range(first, last + 1)])
    return attributed


def _find_piece(text: str, piece: str, cursor: int, overlap: int) -> tuple[int, int] | None:
    """Return ``(start, length)`` of the piece's match in ``text`` at or after ``cursor``."""
    prefix = piece[:LOCATE_PREFIX_CHARS]
    position = text.find(prefix, cursor) if prefix else -1
    if position >= 0:
        return position, len(piece)
    body = piece[overlap:] if 0 < overlap < len(piece) else ""
    prefix = body[:LOCATE_PREFIX_CHARS]
    position = text.find(prefix, cursor) if prefix else -1
    if position >= 0:
        return position, len(body)
    return None


def _page_index(starts: Sequence[int], position: int) -> int:
    # Text before the first recorded offset belongs to the first page.
    return max(0, bisect_right(starts, position) - 1)


__all__ = ["RecursiveTextSplitter", "SplitterConfig", "chunk_document", "locate_pages"]
