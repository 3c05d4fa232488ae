"""Citation marker parsing and resolution."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Sequence

_CITATION_RE = re.compile(r"\[Source:\s*([^\]]+)\]")
_PAGE_SUFFIX_RE = re.compile(r"\s*\(p\.\s*\d+(?:\s*,\s*\d+)*\)\s*$")
_WORD_RE = re.compile(r"\w+")

ELLIPSIS = "…"
DEFAULT_SNIPPET_LENGTH = 300
DEFAULT_SNIPPET_STEP = 40
# Answer words this short are too common to say anything about relevance.
MIN_SIGNIFICANT_WORD_LENGTH = 5


@dataclass(slots=True)
class SourceMeta:
    """A chunk as it was handed to the model for one chat turn."""

    file_name: str
    file_url: str
    mime_type: str
    text: str
    page_numbers: list[int] | None = None


@dataclass(slots=True)
class Citation:
    file_name: str
    file_url: str
    mime_type: str
    snippet: str
    page_numbers: list[int] = field(default_factory=list)


def parse_citations(text: str) -> list[str]:
    """Return cited file names in order of first appearance."""
    seen: dict[str, None] = {}
    for match in _CITATION_RE.finditer(text):
        name = _PAGE_SUFFIX_RE.sub("", match.group(1)).strip()
        if name:
            seen.setdefault(name, None)
    return list(seen)


def strip_citation_markers(text: str) -> str:
    return _CITATION_RE.sub("", text).strip()


def resolve_citations(
    file_names: Iterable[str],
    sources: Sequence[SourceMeta],
    answer_text: str,
    snippet_length: int = DEFAULT_SNIPPET_LENGTH,
    snippet_step: int = DEFAULT_SNIPPET_STEP,
) -> list[Citation]:
    """Map cited names to the sources supplied to the model.

    Names with no matching source are dropped without error; a hallucinated
    citation simply does not appear.
    """
    by_name: dict[str, SourceMeta] = {}
    for source in sources:
        by_name.setdefault(source.file_name, source)

    citations: list[Citation] = []
    for name in file_names:
        source = by_name.get(name)
        if source is None:
            continue
        citations.append(
            Citation(
                file_name=source.file_name,
                file_url=source.file_url,
                mime_type=source.mime_type,
                snippet=select_snippet(source.text, answer_text, snippet_length, snippet_step),
                page_numbers=list(source.page_numbers or []),
            )
        )
    return citations


def select_snippet(
    text: str,
    answer_text: str,
    length: int = DEFAULT_SNIPPET_LENGTH,
    step: int = DEFAULT_SNIPPET_STEP,
) -> str:
    """Pick the window of ``text`` that shares the most words with the answer."""
    if len(text) <= length:
        return text

    words = significant_words(answer_text)
    lowered = text.lower()
    best_start = 0
    best_score = -1
    for start in range(0, len(text) - length + 1, step):
        window = lowered[start : start + length]
        score = sum(1 for word in words if word in window)
        if score > best_score:
            best_start, best_score = start, score

    end = best_start + length
    prefix = ELLIPSIS if best_start > 0 else ""
    suffix = ELLIPSIS if end < len(text) else ""
    return f"{prefix}{text[best_start:end]}{suffix}"


def significant_words(text: str) -> set[str]:
    return {
        word
        for word in _WORD_RE.findall(text.lower())
        if len(word) >= MIN_SIGNIFICANT_WORD_LENGTH
    }


__all__ = [
    "Citation",
    "SourceMeta",
    "parse_citations",
    "strip_citation_markers",
    "resolve_citations",
    "select_snippet",
    "significant_words",
]
