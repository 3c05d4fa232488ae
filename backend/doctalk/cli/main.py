"""CLI entrypoint for DocTalk."""

from __future__ import annotations

import json
import os
from typing import Optional
from urllib.parse import quote

import requests
import typer
import uvicorn

from doctalk.drive.url import parse_folder_url
from doctalk.models.events import TERMINAL_EVENT_TYPES, parse_chat_events, parse_events

app = typer.Typer(name="doctalk", help="DocTalk command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("DOCTALK_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _headers(user: str, token: Optional[str]) -> dict[str, str]:
    headers = {"X-User-Id": user}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=300, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _describe(event) -> str:
    if event.type == "started":
        return f"Indexing {event.total_files} files from {event.folder_name or 'folder'}"
    if event.type == "progress":
        return f"[{event.files_processed}/{event.total_files}] {event.current_file} ({event.chunks_created} chunks)"
    if event.type == "file_skipped":
        return f"Skipped {event.file_name}: {event.reason}"
    if event.type == "file_error":
        return f"Failed {event.file_name}: {event.error}"
    if event.type == "complete":
        return (
            f"Done: {event.files_processed} processed, {event.skipped} skipped, "
            f"{event.errors} errors, {event.chunks_created} chunks"
        )
    return f"Error: {event.message}"


@app.command()
def ingest(
    folder: str = typer.Argument(..., help="Drive folder link or id"),
    user: str = typer.Option(..., "--user", envvar="DOCTALK_USER", help="User id sent as X-User-Id"),
    token: Optional[str] = typer.Option(None, "--token", envvar="DOCTALK_DRIVE_TOKEN", help="Drive access token"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Index a drive folder and print progress as it happens."""
    resp = _request(
        "POST",
        "/ingest",
        host=host,
        json={"folderId": folder},
        headers=_headers(user, token),
        stream=True,
    )
    if resp.headers.get("content-type", "").startswith("application/json"):
        typer.echo(json.dumps(resp.json(), indent=2))
        return
    failed = False
    for event in parse_events(resp.iter_lines()):
        typer.echo(_describe(event))
        if event.type in TERMINAL_EVENT_TYPES:
            failed = event.type == "error"
            break
    if failed:
        raise typer.Exit(code=1)


@app.command()
def ask(
    folder: str = typer.Argument(..., help="Drive folder link or id"),
    question: str = typer.Argument(..., help="Question to ask"),
    user: str = typer.Option(..., "--user", envvar="DOCTALK_USER", help="User id sent as X-User-Id"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask a question about an indexed folder."""
    payload = {"folderId": folder, "messages": [{"role": "user", "content": question}]}
    resp = _request("POST", "/chat", host=host, json=payload, headers=_headers(user, None), stream=True)
    for event in parse_chat_events(resp.iter_lines()):
        if event.type == "text":
            typer.echo(event.delta, nl=False)
        elif event.type == "citations":
            typer.echo("")
            for citation in event.citations:
                pages = citation.page_numbers
                suffix = f" (p.{', '.join(str(page) for page in pages)})" if pages else ""
                typer.echo(f"  [{citation.file_name}{suffix}] {citation.file_url}")
        elif event.type == "error":
            typer.echo(f"\nError: {event.message}", err=True)
            raise typer.Exit(code=1)


@app.command()
def forget(
    folder: str = typer.Argument(..., help="Drive folder link or id"),
    user: str = typer.Option(..., "--user", envvar="DOCTALK_USER", help="User id sent as X-User-Id"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Drop a folder's index so it can be re-ingested."""
    folder_id = parse_folder_url(folder)
    if folder_id is None:
        typer.echo(f"Not a drive folder link or id: {folder}", err=True)
        raise typer.Exit(code=1)
    resp = _request("DELETE", f"/namespaces/{quote(folder_id, safe='')}", host=host, headers=_headers(user, None))
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def serve(
    bind: str = typer.Option("127.0.0.1", "--bind", help="Interface to listen on"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Restart on code changes"),
) -> None:
    """Run the DocTalk API server."""
    uvicorn.run("doctalk.app:app", host=bind, port=port, reload=reload)


if __name__ == "__main__":
    app()
