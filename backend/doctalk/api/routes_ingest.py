"""Ingest API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from doctalk.api.dependencies import (
    DriveClientFactory,
    Identity,
    get_app_settings,
    get_drive_client_factory,
    get_identity,
    get_store,
    resolve_folder_id,
)
from doctalk.core.errors import AuthError
from doctalk.core.logging import get_logger, log_context
from doctalk.ingest.pipeline import IngestPipeline
from doctalk.models.dto import IngestRequest, IngestStatusResponse
from doctalk.models.events import encode_event
from doctalk.vectorstore import VectorStore, get_namespace_key

logger = get_logger(__name__)

router = APIRouter()

NDJSON_MEDIA_TYPE = "application/x-ndjson"


@router.post("", summary="Index a drive folder, streaming progress events")
def trigger_ingest(
    request: IngestRequest,
    identity: Identity = Depends(get_identity),
    store: VectorStore = Depends(get_store),
    drive_factory: DriveClientFactory = Depends(get_drive_client_factory),
):
    if not identity.access_token:
        raise AuthError("Missing drive access token")
    folder_id = resolve_folder_id(request.folder_id)
    namespace_key = get_namespace_key(identity.user_id, folder_id)
    drive = drive_factory(identity.access_token)

    vector_count = store.namespace_info(namespace_key)
    if vector_count > 0:
        logger.info(
            "Namespace already indexed", extra=log_context(namespace=namespace_key, vector_count=vector_count)
        )
        return IngestStatusResponse(vector_count=vector_count, folder_name=drive.get_folder_name(folder_id))

    pipeline = IngestPipeline(source=drive, store=store, settings=get_app_settings())
    events = (encode_event(event) for event in pipeline.events(folder_id, namespace_key))
    return StreamingResponse(
        events,
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache"},
    )


__all__ = ["router"]
