"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IngestRequest(_CamelModel):
    folder_id: str = Field(description="Drive folder id or share link")


class IngestStatusResponse(_CamelModel):
    status: Literal["already_indexed"] = "already_indexed"
    vector_count: int
    folder_name: str


class ChatRequest(_CamelModel):
    folder_id: str
    messages: list[dict[str, Any]]


class DeleteResponse(BaseModel):
    status: Literal["ok"] = "ok"
    namespace: str


class ErrorResponse(BaseModel):
    error: str


__all__ = [
    "IngestRequest",
    "IngestStatusResponse",
    "ChatRequest",
    "DeleteResponse",
    "ErrorResponse",
]
