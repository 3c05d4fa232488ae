"""Google Drive v3 REST client used by the ingest pipeline."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import requests

from doctalk.core.config import Settings, get_settings
from doctalk.core.errors import DRIVE_NOT_FOUND, DRIVE_PERMISSION_DENIED, DriveError
from doctalk.ingest.extractors import SUPPORTED_MIME_TYPES, is_workspace_type

logger = logging.getLogger(__name__)

DRIVE_API = "https://www.googleapis.com/drive/v3"
FOLDER_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
LIST_PAGE_SIZE = 100
REQUEST_TIMEOUT = 60


@dataclass(slots=True)
class DriveFile:
    id: str
    name: str
    mime_type: str
    size: int | None
    web_view_link: str


class DriveClient:
    """List, export and download files from a drive folder."""

    def __init__(
        self,
        access_token: str,
        settings: Settings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {access_token}"})

    def list_files(self, folder_id: str) -> list[DriveFile]:
        if not FOLDER_ID_PATTERN.match(folder_id):
            raise DriveError("Invalid folder ID format", DRIVE_NOT_FOUND)

        files: list[DriveFile] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {
                "q": f"'{folder_id}' in parents and trashed = false",
                "fields": "nextPageToken, files(id, name, mimeType, size, webViewLink)",
                "pageSize": LIST_PAGE_SIZE,
            }
            if page_token:
                params["pageToken"] = page_token
            payload = self._get_json("/files", params, action="list files in folder", subject="Folder")
            for item in payload.get("files") or []:
                drive_file = self._to_drive_file(item)
                if drive_file is not None:
                    files.append(drive_file)
            page_token = payload.get("nextPageToken")
            if not page_token:
                break
        logger.info("Listed %s files in folder %s", len(files), folder_id)
        return files

    def export_file(self, file_id: str, export_mime_type: str) -> str:
        response = self._request(
            f"/files/{file_id}/export",
            {"mimeType": export_mime_type},
            action="export this file",
            subject="File",
        )
        response.encoding = response.encoding or "utf-8"
        return response.text

    def download_file(self, file_id: str) -> bytes:
        response = self._request(
            f"/files/{file_id}",
            {"alt": "media"},
            action="download this file",
            subject="File",
        )
        return response.content

    def get_folder_name(self, folder_id: str) -> str:
        try:
            payload = self._get_json(f"/files/{folder_id}", {"fields": "name"}, action="read folder", subject="Folder")
        except DriveError:
            return folder_id
        return payload.get("name") or folder_id

    # Internal helpers -------------------------------------------------

    def _to_drive_file(self, item: dict[str, Any]) -> DriveFile | None:
        file_id, name, mime_type = item.get("id"), item.get("name"), item.get("mimeType")
        if not file_id or not name or not mime_type:
            return None
        if mime_type in SUPPORTED_MIME_TYPES and is_workspace_type(mime_type):
            size: int | None = self.settings.estimated_workspace_file_size_bytes
        else:
            size = int(item["size"]) if item.get("size") else None
        return DriveFile(
            id=file_id,
            name=name,
            mime_type=mime_type,
            size=size,
            web_view_link=item.get("webViewLink") or f"https://drive.google.com/file/d/{file_id}/view",
        )

    def _get_json(self, path: str, params: dict[str, Any], *, action: str, subject: str) -> dict[str, Any]:
        response = self._request(path, params, action=action, subject=subject)
        try:
            return response.json()
        except ValueError as exc:
            raise DriveError(f"Failed to {action}", cause=exc) from exc

    def _request(self, path: str, params: dict[str, Any], *, action: str, subject: str) -> requests.Response:
        try:
            response = self.session.get(f"{DRIVE_API}{path}", params=params, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            logger.warning("Drive request %s failed: %s", path, exc)
            raise DriveError(f"Failed to {action}", cause=exc) from exc
        if response.status_code == 404:
            raise DriveError(f"{subject} not found, check the link and try again", DRIVE_NOT_FOUND)
        if response.status_code == 403:
            raise DriveError(f"You don't have permission to {action}", DRIVE_PERMISSION_DENIED)
        if not response.ok:
            logger.warning("Drive request %s returned %s", path, response.status_code)
            raise DriveError(f"Failed to {action}")
        return response


__all__ = ["DriveClient", "DriveFile", "FOLDER_ID_PATTERN"]
