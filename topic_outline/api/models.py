"""Pydantic request/response schemas for the outline API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from topic_outline.outline_config import SegmentSource
from topic_outline.persistence.schema import SegmentRecord


class ContentRequest(BaseModel):
    """Request body for the /api/content endpoint."""

    text: str
    source: SegmentSource = SegmentSource.LIVE_TRANSCRIPTION


class ContentResponse(BaseModel):
    """The segment created for the posted text (None when it held no words)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    segment: SegmentRecord | None = None
    word_count: int


class SegmentDetail(BaseModel):
    """A segment, its transcript text and where it is filed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    segment: SegmentRecord
    text: str
    header_id: str | None = None
    sub_header_id: str | None = None


class SummaryResponse(BaseModel):
    """The rolling meeting summary in Markdown."""

    summary: str
