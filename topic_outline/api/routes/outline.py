"""Outline endpoints: snapshot reads, transcript content ingestion and the meeting summary."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from topic_outline.api.models import (
    ContentRequest,
    ContentResponse,
    SegmentDetail,
    SummaryResponse,
)
from topic_outline.errors import MissingReference, PersistenceFailure
from topic_outline.persistence.schema import SegmentRecord
from topic_outline.session import get_session

router = APIRouter()


@router.get("/api/outline")
def read_outline() -> dict[str, Any]:
    """Return the last committed metadata snapshot in its on-disk layout."""
    return get_session().snapshot().to_wire()


@router.get(
    "/api/outline/segments/{segment_id}",
    response_model=SegmentDetail,
    response_model_by_alias=True,
)
def read_segment(segment_id: str) -> SegmentDetail:
    """Return one segment with its text and owning header/sub-header."""
    try:
        segment, text, header, sub = get_session().segment_detail(segment_id)
    except MissingReference as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return SegmentDetail(
        segment=SegmentRecord.from_segment(segment),
        text=text,
        header_id=header.id if header else None,
        sub_header_id=sub.id if sub else None,
    )


@router.post("/api/content", response_model=ContentResponse, response_model_by_alias=True)
def post_content(request: ContentRequest) -> ContentResponse:
    """Append transcript text; live content is classified before returning.

    Raises:
        HTTPException(503): The transcript file could not be appended to.
    """
    session = get_session()
    try:
        segment = session.on_new_content(request.text, request.source)
    except PersistenceFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return ContentResponse(
        segment=SegmentRecord.from_segment(segment) if segment else None,
        word_count=session.words.word_count,
    )


@router.get("/api/summary", response_model=SummaryResponse)
def read_summary() -> SummaryResponse:
    """Return the current meeting summary (empty until the first refresh)."""
    return SummaryResponse(summary=get_session().summary.text)


@router.post("/api/summary", response_model=SummaryResponse)
def refresh_summary() -> SummaryResponse:
    """Create or update the meeting summary from the transcript so far."""
    try:
        summary = get_session().refresh_summary()
    except PersistenceFailure as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return SummaryResponse(summary=summary)
