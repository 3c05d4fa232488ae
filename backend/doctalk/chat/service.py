"""One chat turn: validate, retrieve, prompt, stream, cite."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Iterator, Mapping, Sequence

from doctalk.chat.client import ChatModel
from doctalk.core.config import Settings, get_settings
from doctalk.core.errors import ChatValidationError, DocTalkError, safe_error_message
from doctalk.core.logging import log_context
from doctalk.core.metrics import CHAT_REQUESTS
from doctalk.models.events import (
    ChatCitation,
    ChatEvent,
    ChatSource,
    CitationsEvent,
    DoneEvent,
    ErrorEvent,
    SourcesEvent,
    TextEvent,
)
from doctalk.rag.citations import SourceMeta, parse_citations, resolve_citations
from doctalk.rag.prompt import build_system_prompt
from doctalk.retrieval.search import Retriever
from doctalk.vectorstore.base import get_namespace_key

logger = logging.getLogger(__name__)

_ROLES = frozenset({"user", "assistant"})


class ChatService:
    def __init__(self, retriever: Retriever, model: ChatModel, settings: Settings | None = None) -> None:
        self.retriever = retriever
        self.model = model
        self.settings = settings or get_settings()

    def validate_messages(self, raw: Sequence[Mapping[str, Any]]) -> list[dict[str, str]]:
        """Normalize messages to ``{"role", "content"}`` and enforce limits."""
        if not raw:
            raise ChatValidationError("Missing messages")
        if len(raw) > self.settings.max_messages:
            raise ChatValidationError(f"Too many messages (limit: {self.settings.max_messages})")

        messages: list[dict[str, str]] = []
        for item in raw:
            role = item.get("role")
            content = _message_text(item)
            if role not in _ROLES or content is None:
                raise ChatValidationError("Invalid message format")
            if len(content) > self.settings.max_message_length:
                raise ChatValidationError("Message too long")
            messages.append({"role": role, "content": content})

        if not any(message["role"] == "user" for message in messages):
            raise ChatValidationError("No user message found")
        return messages

    def stream_turn(
        self,
        user_id: str,
        folder_id: str,
        messages: Sequence[dict[str, str]],
    ) -> Iterator[ChatEvent]:
        """Yield ``sources``, ``text`` deltas, ``citations`` and a final ``done``.

        Setup failures (bad namespace, retrieval errors) raise before anything
        is yielded; a model failure after streaming began ends the stream with
        an ``error`` event instead.
        """
        question = next(message["content"] for message in reversed(messages) if message["role"] == "user")
        namespace_key = get_namespace_key(user_id, folder_id)
        results = self.retriever.retrieve(namespace_key, question)
        system = build_system_prompt(results)
        sources = [
            SourceMeta(
                file_name=result.metadata.file_name,
                file_url=result.metadata.file_url,
                mime_type=result.metadata.mime_type,
                text=result.text,
                page_numbers=result.metadata.page_numbers,
            )
            for result in results
        ]
        yield SourcesEvent(sources=[ChatSource(**asdict(source)) for source in sources])

        parts: list[str] = []
        try:
            for delta in self.model.stream(system, messages):
                parts.append(delta)
                yield TextEvent(delta=delta)
        except DocTalkError as exc:
            logger.error("Chat stream failed: %s", exc.message, extra=log_context(namespace=namespace_key, code=exc.code))
            CHAT_REQUESTS.labels(status="error").inc()
            yield ErrorEvent(message=safe_error_message(exc), code=exc.code)
            return

        answer = "".join(parts)
        citations = resolve_citations(
            parse_citations(answer),
            sources,
            answer,
            snippet_length=self.settings.snippet_length,
            snippet_step=self.settings.snippet_step,
        )
        CHAT_REQUESTS.labels(status="ok").inc()
        yield CitationsEvent(citations=[ChatCitation(**asdict(citation)) for citation in citations])
        yield DoneEvent()


def _message_text(message: Mapping[str, Any]) -> str | None:
    # UI clients send text as a list of typed parts; plain clients send content.
    parts = message.get("parts")
    if isinstance(parts, list):
        texts = [
            part["text"]
            for part in parts
            if isinstance(part, Mapping) and part.get("type") == "text" and isinstance(part.get("text"), str)
        ]
        if texts:
            return "".join(texts)
    content = message.get("content")
    return content if isinstance(content, str) else None


__all__ = ["ChatService"]
