"""Ingestion and chat stream events and their NDJSON encoding."""

from __future__ import annotations

import logging
from typing import Annotated, Iterable, Iterator, Literal, Union

import orjson
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class _Event(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class StartedEvent(_Event):
    type: Literal["started"] = "started"
    total_files: int
    folder_name: str | None = None


class ProgressEvent(_Event):
    type: Literal["progress"] = "progress"
    files_processed: int
    total_files: int
    current_file: str
    chunks_created: int


class FileSkippedEvent(_Event):
    type: Literal["file_skipped"] = "file_skipped"
    file_name: str
    reason: str


class FileErrorEvent(_Event):
    type: Literal["file_error"] = "file_error"
    file_name: str
    error: str


class CompleteEvent(_Event):
    type: Literal["complete"] = "complete"
    total_files: int
    files_processed: int
    chunks_created: int
    skipped: int
    errors: int
    folder_name: str | None = None


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str
    code: str | None = None


IngestionEvent = Annotated[
    Union[StartedEvent, ProgressEvent, FileSkippedEvent, FileErrorEvent, CompleteEvent, ErrorEvent],
    Field(discriminator="type"),
]

TERMINAL_EVENT_TYPES = frozenset({"complete", "error"})


class ChatSource(_Event):
    file_name: str
    file_url: str
    mime_type: str
    text: str
    page_numbers: list[int] | None = None


class ChatCitation(_Event):
    file_name: str
    file_url: str
    mime_type: str
    snippet: str
    page_numbers: list[int] = Field(default_factory=list)


class SourcesEvent(_Event):
    type: Literal["sources"] = "sources"
    sources: list[ChatSource]


class TextEvent(_Event):
    type: Literal["text"] = "text"
    delta: str


class CitationsEvent(_Event):
    type: Literal["citations"] = "citations"
    citations: list[ChatCitation]


class DoneEvent(_Event):
    type: Literal["done"] = "done"


ChatEvent = Annotated[
    Union[SourcesEvent, TextEvent, CitationsEvent, DoneEvent, ErrorEvent],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter[IngestionEvent] = TypeAdapter(IngestionEvent)
_CHAT_EVENT_ADAPTER: TypeAdapter[ChatEvent] = TypeAdapter(ChatEvent)


def encode_event(event: _Event) -> bytes:
    """Serialize one event as a JSON line."""
    return orjson.dumps(event.model_dump(by_alias=True, exclude_none=True)) + b"\n"


def parse_events(lines: Iterable[str | bytes]) -> Iterator[IngestionEvent]:
    """Decode an ingestion stream, skipping blank and malformed lines."""
    return _parse(lines, _EVENT_ADAPTER)


def parse_chat_events(lines: Iterable[str | bytes]) -> Iterator[ChatEvent]:
    """Decode a chat stream, skipping blank and malformed lines."""
    return _parse(lines, _CHAT_EVENT_ADAPTER)


def _parse(lines: Iterable[str | bytes], adapter: TypeAdapter) -> Iterator:
    for line in lines:
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        line = line.strip()
        if line.startswith("data:"):
            line = line[len("data:") :].strip()
        if not line:
            continue
        try:
            yield adapter.validate_python(orjson.loads(line))
        except (orjson.JSONDecodeError, ValidationError) as exc:
            logger.debug("Skipping malformed event line %r: %s", line[:80], exc)


__all__ = [
    "StartedEvent",
    "ProgressEvent",
    "FileSkippedEvent",
    "FileErrorEvent",
    "CompleteEvent",
    "ErrorEvent",
    "IngestionEvent",
    "TERMINAL_EVENT_TYPES",
    "ChatSource",
    "ChatCitation",
    "SourcesEvent",
    "TextEvent",
    "CitationsEvent",
    "DoneEvent",
    "ChatEvent",
    "encode_event",
    "parse_events",
    "parse_chat_events",
]
