"""Shared FastAPI dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable

from fastapi import Depends, Header, HTTPException

from doctalk.chat.client import ChatModel
from doctalk.chat.service import ChatService
from doctalk.core.config import Settings, get_settings
from doctalk.core.errors import AuthError
from doctalk.drive.client import DriveClient
from doctalk.drive.url import parse_folder_url
from doctalk.retrieval import Retriever
from doctalk.vectorstore import VectorStore, get_vector_store

_VECTOR_STORE: VectorStore | None = None
_CHAT_MODEL: ChatModel | None = None

DriveClientFactory = Callable[[str], DriveClient]


@dataclass(slots=True)
class Identity:
    """Caller identity resolved by the upstream auth layer."""

    user_id: str
    access_token: str | None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_store() -> VectorStore:
    global _VECTOR_STORE
    if _VECTOR_STORE is None:
        _VECTOR_STORE = get_vector_store(get_app_settings())
    return _VECTOR_STORE


def get_chat_model() -> ChatModel:
    global _CHAT_MODEL
    if _CHAT_MODEL is None:
        _CHAT_MODEL = ChatModel(get_app_settings())
    return _CHAT_MODEL


def get_chat_service(
    store: VectorStore = Depends(get_store),
    model: ChatModel = Depends(get_chat_model),
) -> ChatService:
    settings = get_app_settings()
    return ChatService(retriever=Retriever(store, settings), model=model, settings=settings)


def get_drive_client_factory() -> DriveClientFactory:
    settings = get_app_settings()
    return lambda access_token: DriveClient(access_token, settings=settings)


def get_identity(
    x_user_id: str | None = Header(default=None),
    authorization: str | None = Header(default=None),
) -> Identity:
    if not x_user_id:
        raise AuthError("Unauthorized")
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[len("bearer ") :].strip() or None
    return Identity(user_id=x_user_id, access_token=token)


def resolve_folder_id(value: str) -> str:
    """Accept a share link or bare id, bounded in length."""
    settings = get_app_settings()
    folder_id = parse_folder_url(value) if value else None
    if not folder_id or len(folder_id) > settings.max_folder_id_length:
        raise HTTPException(status_code=400, detail="Missing or invalid folderId")
    return folder_id


def reset_singletons() -> None:
    global _VECTOR_STORE, _CHAT_MODEL
    get_app_settings.cache_clear()
    _VECTOR_STORE = None
    _CHAT_MODEL = None


__all__ = [
    "Identity",
    "DriveClientFactory",
    "get_app_settings",
    "get_store",
    "get_chat_model",
    "get_chat_service",
    "get_drive_client_factory",
    "get_identity",
    "resolve_folder_id",
    "reset_singletons",
]
