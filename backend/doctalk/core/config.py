"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

ENV_PREFIX = "DOCTALK_"
DEFAULT_CONFIG_PATH = Path("~/.config/doctalk/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("chunking", "chunk_size"): "chunk_size",
    ("chunking", "chunk_overlap"): "chunk_overlap",
    ("chunking", "separators"): "separators",
    ("ingestion", "max_files"): "max_files",
    ("ingestion", "max_aggregate_size_bytes"): "max_aggregate_size_bytes",
    ("ingestion", "max_file_size_bytes"): "max_file_size_bytes",
    ("ingestion", "estimated_workspace_file_size_bytes"): "estimated_workspace_file_size_bytes",
    ("retrieval", "top_k"): "top_k",
    ("retrieval", "rerank_top_k"): "rerank_top_k",
    ("citations", "snippet_length"): "snippet_length",
    ("citations", "snippet_step"): "snippet_step",
    ("vector", "url"): "vector_url",
    ("vector", "token"): "vector_token",
    ("vector", "upsert_batch_size"): "upsert_batch_size",
    ("chat", "model"): "chat_model",
    ("chat", "base_url"): "chat_base_url",
    ("chat", "api_key"): "chat_api_key",
    ("chat", "max_messages"): "max_messages",
    ("chat", "max_message_length"): "max_message_length",
}

# Well-known variable names used by the hosted services, read in addition to
# the DOCTALK_ prefixed overrides.
_SERVICE_ENV_VARS: Mapping[str, str] = {
    "UPSTASH_VECTOR_REST_URL": "vector_url",
    "UPSTASH_VECTOR_REST_TOKEN": "vector_token",
    "OPENROUTER_API_KEY": "chat_api_key",
    "OPENROUTER_MODEL": "chat_model",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    chunk_size: int = Field(default=2000, ge=1)
    chunk_overlap: int = Field(default=200, ge=0)
    separators: list[str] = Field(default_factory=lambda: ["\n\n", "\n", ". ", " ", ""])

    max_files: int = 50
    max_aggregate_size_bytes: int = 30 * 1024 * 1024
    max_file_size_bytes: int = 10 * 1024 * 1024
    # Workspace files don't report a size in the Drive API
    estimated_workspace_file_size_bytes: int = 100 * 1024

    top_k: int = Field(default=10, ge=1)
    rerank_top_k: int = Field(default=5, ge=1)

    snippet_length: int = Field(default=300, ge=1)
    snippet_step: int = Field(default=40, ge=1)

    vector_url: str | None = None
    vector_token: str | None = None
    upsert_batch_size: int = Field(default=100, ge=1)

    chat_model: str = "openai/gpt-4o-mini"
    chat_base_url: str = "https://openrouter.ai/api/v1"
    chat_api_key: str | None = None
    max_messages: int = 50
    max_message_length: int = 10_000
    max_folder_id_length: int = 128

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("separators", mode="before")
    @classmethod
    def _coerce_separators(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            # env override: comma separated with escaped newlines
            return [part.encode("utf-8").decode("unicode_escape") for part in value.split(",")]
        return value

    @model_validator(mode="after")
    def _check_limits(self) -> "Settings":
        if self.rerank_top_k > self.top_k:
            raise ValueError("rerank_top_k cannot exceed top_k")
        return self

    @property
    def vector_configured(self) -> bool:
        return bool(self.vector_url and self.vector_token)

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map service variables and DOCTALK_ prefixed variables into Settings fields."""
    overrides: dict[str, Any] = {}
    for env_name, field_name in _SERVICE_ENV_VARS.items():
        value = os.environ.get(env_name)
        if value:
            overrides[field_name] = value
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
