"""FastAPI application setup for DocTalk."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from doctalk.api.dependencies import get_app_settings, get_store
from doctalk.api.routes_admin import router as admin_router
from doctalk.api.routes_chat import router as chat_router
from doctalk.api.routes_ingest import router as ingest_router
from doctalk.core.errors import DocTalkError, error_to_status, safe_error_message
from doctalk.core.logging import configure_logging, get_logger
from doctalk.models.dto import ErrorResponse

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="DocTalk",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

ERROR_RESPONSES = {401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}}

app.include_router(ingest_router, prefix="/ingest", tags=["ingest"], responses=ERROR_RESPONSES)
app.include_router(chat_router, prefix="", tags=["chat"], responses=ERROR_RESPONSES)
app.include_router(admin_router, prefix="", tags=["admin"], responses=ERROR_RESPONSES)


@app.exception_handler(DocTalkError)
async def handle_doctalk_error(request: Request, exc: DocTalkError) -> JSONResponse:
    status = error_to_status(exc)
    if status >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    return JSONResponse({"error": safe_error_message(exc)}, status_code=status)


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_store()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
