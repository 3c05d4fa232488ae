"""OpenAI-compatible chat completions client (OpenRouter by default)."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Sequence

import orjson
import requests

from doctalk.core.config import Settings, get_settings
from doctalk.core.errors import ChatError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 120


class ChatModel:
    """Stream answers from a hosted chat model."""

    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None) -> None:
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def stream(self, system: str, messages: Sequence[dict[str, str]]) -> Iterator[str]:
        """Yield text deltas as the model produces them."""
        body = {
            "model": self.settings.chat_model,
            "stream": True,
            "messages": [{"role": "system", "content": system}, *messages],
        }
        headers = {"Content-Type": "application/json"}
        if self.settings.chat_api_key:
            headers["Authorization"] = f"Bearer {self.settings.chat_api_key}"
        url = f"{self.settings.chat_base_url.rstrip('/')}/chat/completions"
        try:
            response = self.session.post(
                url,
                data=orjson.dumps(body),
                headers=headers,
                stream=True,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise ChatError(f"Chat request failed: {exc}", cause=exc) from exc
        if not response.ok:
            logger.warning("Chat model returned %s: %s", response.status_code, response.text[:200])
            raise ChatError(f"Chat model returned HTTP {response.status_code}")

        with response:
            try:
                for line in response.iter_lines(decode_unicode=True):
                    delta = _parse_sse_line(line)
                    if delta is None:
                        continue
                    if delta is _DONE:
                        break
                    yield delta
            except requests.RequestException as exc:
                raise ChatError(f"Chat stream interrupted: {exc}", cause=exc) from exc

    def complete(self, system: str, messages: Sequence[dict[str, str]]) -> str:
        return "".join(self.stream(system, messages))


_DONE = object()


def _parse_sse_line(line: str | bytes | None) -> Any:
    if not line:
        return None
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    if not line.startswith("data:"):
        return None
    data = line[len("data:") :].strip()
    if data == "[DONE]":
        return _DONE
    try:
        payload = orjson.loads(data)
    except orjson.JSONDecodeError:
        logger.debug("Ignoring malformed stream line %r", data[:80])
        return None
    if payload.get("error"):
        raise ChatError(f"Chat model error: {payload['error']}")
    choices = payload.get("choices") or []
    if not choices:
        return None
    content = (choices[0].get("delta") or {}).get("content")
    return content or None


__all__ = ["ChatModel"]
