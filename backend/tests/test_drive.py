"""Drive client and folder link tests."""

from __future__ import annotations

from typing import Any

import pytest

from doctalk.core.config import Settings
from doctalk.core.errors import DRIVE_NOT_FOUND, DRIVE_PERMISSION_DENIED, DriveError
from doctalk.drive.client import DriveClient
from doctalk.drive.url import parse_folder_url
from doctalk.ingest.extractors import GOOGLE_DOC


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, content: bytes = b"") -> None:
        self._payload = payload
        self.status_code = status_code
        self.ok = status_code < 400
        self.content = content
        self.encoding: str | None = None

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8")

    def json(self) -> Any:
        return self._payload


class FakeSession:
    def __init__(self, *responses: FakeResponse) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._responses = list(responses)

    def get(self, url: str, params: dict[str, Any] | None = None, timeout: float | None = None) -> FakeResponse:
        self.calls.append((url, params or {}))
        return self._responses.pop(0)


def _client(*responses: FakeResponse) -> tuple[DriveClient, FakeSession]:
    session = FakeSession(*responses)
    return DriveClient("token-123", settings=Settings(), session=session), session


def test_list_files_paginates_and_normalizes() -> None:
    first = {
        "files": [
            {"id": "1", "name": "Plan", "mimeType": GOOGLE_DOC, "webViewLink": "https://docs/1"},
            {"id": "2", "name": "a.pdf", "mimeType": "application/pdf", "size": "2048"},
        ],
        "nextPageToken": "next",
    }
    second = {"files": [{"id": "3", "name": "b.txt", "mimeType": "text/plain"}, {"id": "4", "mimeType": "text/plain"}]}
    client, session = _client(FakeResponse(first), FakeResponse(second))

    files = client.list_files("folder1234567")

    assert session.headers["Authorization"] == "Bearer token-123"
    assert [f.id for f in files] == ["1", "2", "3"]
    assert files[0].size == Settings().estimated_workspace_file_size_bytes
    assert files[0].web_view_link == "https://docs/1"
    assert files[1].size == 2048
    assert files[2].size is None
    assert files[2].web_view_link == "https://drive.google.com/file/d/3/view"
    assert "'folder1234567' in parents" in session.calls[0][1]["q"]
    assert session.calls[1][1]["pageToken"] == "next"


def test_list_files_rejects_bad_folder_id() -> None:
    client, session = _client()
    with pytest.raises(DriveError):
        client.list_files("bad id' or 1=1")
    assert session.calls == []


@pytest.mark.parametrize(
    ("status", "code"),
    [(404, DRIVE_NOT_FOUND), (403, DRIVE_PERMISSION_DENIED), (500, "DRIVE_ERROR")],
)
def test_http_errors_map_to_codes(status: int, code: str) -> None:
    client, _ = _client(FakeResponse({"error": {}}, status_code=status))
    with pytest.raises(DriveError) as excinfo:
        client.list_files("folder1234567")
    assert excinfo.value.code == code


def test_export_and_download() -> None:
    client, session = _client(
        FakeResponse(content="Exported text".encode("utf-8")),
        FakeResponse(content=b"%PDF-1.4"),
    )
    assert client.export_file("1", "text/plain") == "Exported text"
    assert client.download_file("2") == b"%PDF-1.4"
    assert session.calls[0][0].endswith("/files/1/export")
    assert session.calls[0][1] == {"mimeType": "text/plain"}
    assert session.calls[1][1] == {"alt": "media"}


def test_folder_name_falls_back_to_id() -> None:
    client, _ = _client(FakeResponse({"name": "Quarterly"}), FakeResponse({}, status_code=403))
    assert client.get_folder_name("folder1234567") == "Quarterly"
    assert client.get_folder_name("folder1234567") == "folder1234567"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("https://drive.google.com/drive/folders/1AbC_dEf-GhIjK?usp=sharing", "1AbC_dEf-GhIjK"),
        ("https://drive.google.com/drive/u/0/folders/1AbC_dEf-GhIjK", "1AbC_dEf-GhIjK"),
        ("https://drive.google.com/open?id=1AbC_dEf-GhIjK", "1AbC_dEf-GhIjK"),
        ("  1AbC_dEf-GhIjK  ", "1AbC_dEf-GhIjK"),
        ("short", None),
        ("https://example.com/folders/abc", None),
    ],
)
def test_parse_folder_url(value: str, expected: str | None) -> None:
    assert parse_folder_url(value) == expected
