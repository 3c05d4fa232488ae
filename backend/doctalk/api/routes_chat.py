"""Chat API routes."""

from __future__ import annotations

from typing import Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from doctalk.api.dependencies import Identity, get_chat_service, get_identity, resolve_folder_id
from doctalk.chat.service import ChatService
from doctalk.models.dto import ChatRequest
from doctalk.models.events import ChatEvent, encode_event

router = APIRouter()


@router.post("/chat", summary="Answer a question over an indexed folder")
def chat(
    request: ChatRequest,
    identity: Identity = Depends(get_identity),
    service: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    folder_id = resolve_folder_id(request.folder_id)
    messages = service.validate_messages(request.messages)
    events = service.stream_turn(identity.user_id, folder_id, messages)
    # Setup errors must raise before the response starts streaming.
    first = next(events)
    return StreamingResponse(
        _encode(first, events),
        media_type="application/x-ndjson",
        headers={"Cache-Control": "no-cache"},
    )


def _encode(first: ChatEvent, rest: Iterator[ChatEvent]) -> Iterator[bytes]:
    yield encode_event(first)
    for event in rest:
        yield encode_event(event)


__all__ = ["router"]
