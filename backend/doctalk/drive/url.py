"""Folder link parsing."""

from __future__ import annotations

import re

_FOLDER_URL_PATTERNS = (
    re.compile(r"drive\.google\.com/drive/(?:u/\d+/)?folders/([a-zA-Z0-9_-]+)"),
    re.compile(r"drive\.google\.com/open\?id=([a-zA-Z0-9_-]+)"),
)
_BARE_FOLDER_ID = re.compile(r"^[a-zA-Z0-9_-]{10,}$")


def parse_folder_url(value: str) -> str | None:
    """Return the folder id from a share link or bare id, else ``None``."""
    trimmed = value.strip()
    for pattern in _FOLDER_URL_PATTERNS:
        match = pattern.search(trimmed)
        if match:
            return match.group(1)
    if _BARE_FOLDER_ID.match(trimmed):
        return trimmed
    return None


__all__ = ["parse_folder_url"]
