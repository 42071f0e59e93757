"""
API routes for triggering imports and reading reconstructed threads.
"""

from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel, Field

from mailthreads import __version__
from mailthreads.domain.errors import (
    EmailImportError,
    MessageSourceError,
    MessagesAlreadyImported,
)
from mailthreads.infrastructure import (
    Settings,
    create_import_use_case,
    create_message_source,
    get_settings,
    get_store_client,
)
from mailthreads.infrastructure.stores import StoreClient

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class ImportRequest(BaseModel):
    """Request body for an import run."""

    source: Literal["imap", "mbox"] = Field("mbox", description="Where to fetch messages from")
    mbox_path: str | None = Field(None, description="Mbox file (defaults to the configured path)")
    ordering: Literal["strict", "topological"] | None = Field(
        None, description="Reply ordering policy (defaults to the configured one)"
    )


class ImportResponse(BaseModel):
    """Outcome of a completed import run."""

    fetched: int
    imported: int
    threads_created: int
    unknown_senders: int


class ThreadResponse(BaseModel):
    id: int
    name: str


class MessageResponse(BaseModel):
    id: int | None
    universal_id: str
    thread_id: int
    sender_id: int | None
    in_reply_to: str | None
    sent_at: datetime | None
    text: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str
    store: dict


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health(store: StoreClient = Depends(get_store_client)) -> HealthResponse:
    store_health = store.health_check()
    return HealthResponse(
        status=store_health["status"],
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        store=store_health,
    )


@router.post("/imports", response_model=ImportResponse)
async def run_import(
    request: ImportRequest,
    store: StoreClient = Depends(get_store_client),
    settings: Settings = Depends(get_settings),
):
    """Run one import over the whole batch the source delivers.

    Thread resolution errors answer 422, source failures 502 and a batch that
    was already imported 409; all carry the error ``kind`` so a caller can
    decide whether to re-run the import.
    """
    try:
        source = create_message_source(settings, request.source, request.mbox_path)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    use_case = create_import_use_case(store, source, request.ordering or settings.reply_ordering)

    try:
        report = await use_case.run()
    except MessageSourceError as e:
        logger.error(f"Import aborted, source failed: {e}")
        return JSONResponse(status_code=502, content={"kind": e.kind, "detail": str(e)})
    except MessagesAlreadyImported as e:
        logger.error(f"Import refused: {e}")
        return JSONResponse(status_code=409, content={"kind": e.kind, "detail": str(e)})
    except EmailImportError as e:
        logger.error(f"Import aborted: {e}")
        return JSONResponse(status_code=422, content={"kind": e.kind, "detail": str(e)})

    return ImportResponse(**report.to_dict())


@router.get("/threads", response_model=list[ThreadResponse])
async def list_threads(store: StoreClient = Depends(get_store_client)) -> list[ThreadResponse]:
    return [ThreadResponse(id=t.id, name=t.name) for t in store.list_threads()]


@router.get("/threads/{thread_id}/messages", response_model=list[MessageResponse])
async def list_thread_messages(
    thread_id: int,
    store: StoreClient = Depends(get_store_client),
) -> list[MessageResponse]:
    if store.get_thread(thread_id) is None:
        raise HTTPException(status_code=404, detail=f"Thread {thread_id} not found")

    return [
        MessageResponse(
            id=m.id,
            universal_id=m.universal_id,
            thread_id=m.thread_id,
            sender_id=m.sender_id,
            in_reply_to=m.in_reply_to,
            sent_at=m.sent_at,
            text=m.text,
        )
        for m in store.list_messages(thread_id)
    ]
