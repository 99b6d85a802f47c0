"""JSON routes exposing the current dashboard session."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import PreviewDocument, ReadingOut, ReadingPatch
from models.readings import Reading
from services.dashboard import DashboardSession, build_default_session
from services.errors import PreviewNotFoundError, ReadingIndexError

router = APIRouter()


def get_session() -> DashboardSession:
    return build_default_session()


def _reading_out(index: int, reading: Reading) -> ReadingOut:
    return ReadingOut(
        index=index,
        unit=reading.unit,
        previous_reading=reading.previous_reading,
        current_reading=reading.current_reading,
        consumption=reading.consumption,
        is_common_area=reading.is_common_area,
        is_negative=reading.is_negative,
    )


@router.get(
    "/api/readings",
    response_model=List[ReadingOut],
    summary="List imported readings with their derived consumption.",
)
async def list_readings(
    session: DashboardSession = Depends(get_session),
) -> List[ReadingOut]:
    return [_reading_out(index, reading) for index, reading in enumerate(session.store.all())]


@router.patch(
    "/api/readings/{index}",
    response_model=ReadingOut,
    summary="Edit one reading in place.",
)
async def patch_reading(
    index: int,
    patch: ReadingPatch,
    session: DashboardSession = Depends(get_session),
) -> ReadingOut:
    try:
        if patch.previous_reading is not None:
            session.store.set_field(index, "previous_reading", patch.previous_reading)
        if patch.current_reading is not None:
            session.store.set_field(index, "current_reading", patch.current_reading)
        if patch.is_common_area is not None:
            session.store.set_common_area(index, patch.is_common_area)
        reading = session.store.get(index)
    except ReadingIndexError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return _reading_out(index, reading)


@router.get(
    "/api/preview/{selector}",
    response_model=PreviewDocument,
    summary="Fetch a document of the latest preview.",
)
async def get_preview_document(
    selector: str,
    session: DashboardSession = Depends(get_session),
) -> PreviewDocument:
    try:
        content = session.presenter.content_for(selector)
    except PreviewNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return PreviewDocument(selector=selector, content=content)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "Open /ui for the dashboard."}
