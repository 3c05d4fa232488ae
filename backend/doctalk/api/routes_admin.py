"""Administrative routes for DocTalk."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from doctalk.api.dependencies import Identity, get_identity, get_store, resolve_folder_id
from doctalk.core.logging import get_logger, log_context
from doctalk.core.metrics import metrics_response
from doctalk.models.dto import DeleteResponse
from doctalk.vectorstore import VectorStore, get_namespace_key

logger = get_logger(__name__)

router = APIRouter()


@router.delete("/namespaces/{folder_id}", response_model=DeleteResponse, summary="Drop a folder's index")
def delete_namespace(
    folder_id: str,
    identity: Identity = Depends(get_identity),
    store: VectorStore = Depends(get_store),
) -> DeleteResponse:
    namespace_key = get_namespace_key(identity.user_id, resolve_folder_id(folder_id))
    store.delete_namespace(namespace_key)
    logger.info("Deleted namespace", extra=log_context(namespace=namespace_key))
    return DeleteResponse(namespace=namespace_key)


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
