"""Reranking helpers."""

from __future__ import annotations

from typing import Sequence

from doctalk.vectorstore.base import SearchResult


def rerank(results: Sequence[SearchResult], limit: int) -> list[SearchResult]:
    """Keep the best results while dropping adjacent chunks of one file.

    A result is redundant when an already kept result comes from the same file
    and sits at most one chunk away. This is a cheap stand-in for MMR-style
    diversification and never looks at chunk content.
    """
    ordered = sorted(results, key=lambda result: result.score, reverse=True)
    kept: list[SearchResult] = []
    for result in ordered:
        if len(kept) >= limit:
            break
        if any(_is_adjacent(result, chosen) for chosen in kept):
            continue
        kept.append(result)
    return kept


def _is_adjacent(candidate: SearchResult, chosen: SearchResult) -> bool:
    return (
        candidate.metadata.file_id == chosen.metadata.file_id
        and abs(candidate.metadata.chunk_index - chosen.metadata.chunk_index) <= 1
    )


__all__ = ["rerank"]
