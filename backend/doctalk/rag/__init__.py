"""Prompt construction and citation handling for chat turns."""

from .citations import (
    Citation,
    SourceMeta,
    parse_citations,
    resolve_citations,
    select_snippet,
    strip_citation_markers,
)
from .prompt import build_system_prompt

__all__ = [
    "Citation",
    "SourceMeta",
    "build_system_prompt",
    "parse_citations",
    "resolve_citations",
    "select_snippet",
    "strip_citation_markers",
]
