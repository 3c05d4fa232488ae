"""Error taxonomy shared by the pipeline, clients and API."""

from __future__ import annotations


class DocTalkError(RuntimeError):
    """Base error carrying a stable machine-readable code."""

    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        if cause is not None:
            self.__cause__ = cause


class AuthError(DocTalkError):
    default_code = "AUTH_ERROR"


class DriveError(DocTalkError):
    default_code = "DRIVE_ERROR"


class IngestionError(DocTalkError):
    default_code = "INGESTION_ERROR"


class VectorStoreError(DocTalkError):
    default_code = "VECTOR_STORE_ERROR"


class ChatError(DocTalkError):
    default_code = "CHAT_ERROR"


class ChatValidationError(DocTalkError):
    default_code = "CHAT_INVALID_REQUEST"


TOO_MANY_FILES = "INGESTION_TOO_MANY_FILES"
FOLDER_TOO_LARGE = "INGESTION_FOLDER_TOO_LARGE"
DRIVE_NOT_FOUND = "DRIVE_NOT_FOUND"
DRIVE_PERMISSION_DENIED = "DRIVE_PERMISSION_DENIED"

# Messages for codes whose raw text may leak upstream details.
_SAFE_MESSAGES: dict[str, str] = {
    "AUTH_ERROR": "Authentication failed",
    "TOKEN_EXPIRED": "Session expired, please sign in again",
    DRIVE_NOT_FOUND: "Folder not found or inaccessible",
    DRIVE_PERMISSION_DENIED: "You don't have access to this folder",
    "DRIVE_ERROR": "Something went wrong accessing Google Drive",
    "VECTOR_STORE_ERROR": "Something went wrong, please try again",
    "INGESTION_ERROR": "Something went wrong during ingestion",
    "CHAT_ERROR": "An error occurred while generating the response",
}

_STATUS_CODES: dict[str, int] = {
    "AUTH_ERROR": 401,
    "TOKEN_EXPIRED": 401,
    DRIVE_NOT_FOUND: 404,
    DRIVE_PERMISSION_DENIED: 403,
    "DRIVE_ERROR": 502,
    FOLDER_TOO_LARGE: 413,
    TOO_MANY_FILES: 413,
    "INGESTION_ERROR": 422,
    "VECTOR_STORE_ERROR": 502,
    "CHAT_ERROR": 502,
    "CHAT_INVALID_REQUEST": 400,
}


def safe_error_message(error: DocTalkError) -> str:
    """Return a user-facing message for ``error``."""
    return _SAFE_MESSAGES.get(error.code, error.message)


def error_to_status(error: DocTalkError) -> int:
    """Map an error code to an HTTP status."""
    return _STATUS_CODES.get(error.code, 500)


__all__ = [
    "DocTalkError",
    "AuthError",
    "DriveError",
    "IngestionError",
    "VectorStoreError",
    "ChatError",
    "ChatValidationError",
    "TOO_MANY_FILES",
    "FOLDER_TOO_LARGE",
    "DRIVE_NOT_FOUND",
    "DRIVE_PERMISSION_DENIED",
    "safe_error_message",
    "error_to_status",
]
