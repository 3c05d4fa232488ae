"""Text extractors for supported drive mime types."""

from __future__ import annotations

import logging
from typing import Mapping

import fitz

from doctalk.ingest.types import ExtractionResult, PageOffset

logger = logging.getLogger(__name__)

GOOGLE_DOC = "application/vnd.google-apps.document"
GOOGLE_SHEET = "application/vnd.google-apps.spreadsheet"
GOOGLE_SLIDES = "application/vnd.google-apps.presentation"
WORKSPACE_PREFIX = "application/vnd.google-apps."

# Workspace files are exported to the mapped format; ``None`` means download as-is.
SUPPORTED_MIME_TYPES: Mapping[str, str | None] = {
    GOOGLE_DOC: "text/plain",
    GOOGLE_SHEET: "text/csv",
    GOOGLE_SLIDES: "text/plain",
    "application/pdf": None,
    "text/plain": None,
    "text/markdown": None,
    "text/csv": None,
}

PAGE_SEPARATOR = "\n\n"


class BaseExtractor:
    """Common extractor interface."""

    mime_types: tuple[str, ...] = ()

    def can_extract(self, mime_type: str) -> bool:
        return mime_type in self.mime_types

    def extract(self, content: str | bytes, file_name: str) -> ExtractionResult:  # pragma: no cover - interface
        raise NotImplementedError


class TextExtractor(BaseExtractor):
    mime_types = (GOOGLE_DOC, GOOGLE_SHEET, GOOGLE_SLIDES, "text/plain", "text/markdown", "text/csv")

    def extract(self, content: str | bytes, file_name: str) -> ExtractionResult:
        text = content if isinstance(content, str) else content.decode("utf-8", errors="replace")
        return ExtractionResult(text=text.strip())


class PDFExtractor(BaseExtractor):
    mime_types = ("application/pdf",)

    def extract(self, content: str | bytes, file_name: str) -> ExtractionResult:
        raw = content.encode("utf-8") if isinstance(content, str) else content
        try:
            with fitz.open(stream=raw, filetype="pdf") as doc:
                pages = [(page.number + 1, page.get_text("text", sort=True)) for page in doc]
        except Exception as exc:
            logger.warning("Failed to parse PDF %s: %s", file_name, exc)
            return ExtractionResult.skip(f'Failed to parse PDF "{file_name}": {exc}')

        joined, page_offsets = join_pages(pages)
        if not joined:
            return ExtractionResult.skip(
                f'PDF "{file_name}" contains no extractable text (may be scanned/image-based)'
            )
        return ExtractionResult(text=joined, page_offsets=page_offsets)


def join_pages(pages: list[tuple[int, str]]) -> tuple[str, list[PageOffset]]:
    """Join page texts and record where each page starts in the stripped result."""
    raw = ""
    starts: list[tuple[int, int]] = []
    for idx, (page_number, page_text) in enumerate(pages):
        if idx:
            raw += PAGE_SEPARATOR
        starts.append((page_number, len(raw)))
        raw += page_text
    text = raw.strip()
    trim_delta = len(raw) - len(raw.lstrip())
    offsets = [
        PageOffset(page_number=page_number, start_offset=max(0, start - trim_delta))
        for page_number, start in starts
    ]
    return text, offsets


class ExtractorRegistry:
    """Registry that selects an appropriate extractor for a mime type."""

    def __init__(self) -> None:
        self._extractors: list[BaseExtractor] = [TextExtractor(), PDFExtractor()]

    def for_mime_type(self, mime_type: str) -> BaseExtractor | None:
        for extractor in self._extractors:
            if extractor.can_extract(mime_type):
                return extractor
        return None

    def extract(self, content: str | bytes, mime_type: str, file_name: str) -> ExtractionResult:
        extractor = self.for_mime_type(mime_type)
        if extractor is None:
            return ExtractionResult.skip(f'Unsupported file type ({mime_type}) for "{file_name}"')
        return extractor.extract(content, file_name)


def is_workspace_type(mime_type: str) -> bool:
    return mime_type.startswith(WORKSPACE_PREFIX)


__all__ = [
    "SUPPORTED_MIME_TYPES",
    "BaseExtractor",
    "TextExtractor",
    "PDFExtractor",
    "ExtractorRegistry",
    "join_pages",
    "is_workspace_type",
]
