"""Pydantic schema for the metadata snapshot file (camelCase on the wire)."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from topic_outline.outline.models import (
    METADATA_VERSION,
    Header,
    Outline,
    Segment,
    SubHeader,
    utc_now_iso,
)
from topic_outline.outline_config import SegmentSource

_WIRE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SegmentRecord(BaseModel):
    """A segment as stored in the metadata file."""

    model_config = _WIRE_CONFIG

    id: str
    start_word_index: int
    end_word_index: int
    timestamp: str = Field(default_factory=utc_now_iso)
    source: SegmentSource = SegmentSource.OTHER
    split_from: str | None = None

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, value: Any) -> Any:
        if isinstance(value, SegmentSource):
            return value
        return SegmentSource(str(value))

    @classmethod
    def from_segment(cls, segment: Segment) -> SegmentRecord:
        return cls(
            id=segment.id,
            start_word_index=segment.start_word_index,
            end_word_index=segment.end_word_index,
            timestamp=segment.created_at,
            source=segment.source,
            split_from=segment.split_from,
        )

    def to_segment(self) -> Segment:
        return Segment(
            id=self.id,
            start_word_index=self.start_word_index,
            end_word_index=self.end_word_index,
            created_at=self.timestamp,
            source=self.source,
            split_from=self.split_from,
        )


class SubHeaderRecord(BaseModel):
    model_config = _WIRE_CONFIG

    id: str
    title: str
    segments: list[str] = Field(default_factory=list)
    summary: str = ""
    parent_id: str
    timestamp: str = Field(default_factory=utc_now_iso)

    @model_validator(mode="before")
    @classmethod
    def _null_summary(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("summary") is None:
            data = {**data, "summary": ""}
        return data


class HeaderRecord(BaseModel):
    """A header as stored in the metadata file.

    Files written before sub-headers and locking existed lack ``summary``,
    ``locked`` and ``subHeaders``; they are backfilled on load.
    """

    model_config = _WIRE_CONFIG

    id: str
    title: str
    segments: list[str] = Field(default_factory=list)
    summary: str = ""
    locked: bool = False
    sub_headers: list[SubHeaderRecord] = Field(default_factory=list)
    timestamp: str = Field(default_factory=utc_now_iso)

    @model_validator(mode="before")
    @classmethod
    def _backfill_legacy_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("segments") is None:
            data["segments"] = []
        if not data.get("summary"):
            data["summary"] = ""
        if data.get("locked") is None:
            data["locked"] = len(data["segments"]) >= 3
        if data.get("subHeaders") is None and data.get("sub_headers") is None:
            data["subHeaders"] = []
        return data

    @classmethod
    def from_header(cls, header: Header) -> HeaderRecord:
        return cls(
            id=header.id,
            title=header.title,
            segments=list(header.segments),
            summary=header.summary,
            locked=header.locked,
            sub_headers=[
                SubHeaderRecord(
                    id=sub.id,
                    title=sub.title,
                    segments=list(sub.segments),
                    summary=sub.summary,
                    parent_id=sub.parent_id,
                    timestamp=sub.created_at,
                )
                for sub in header.sub_headers
            ],
            timestamp=header.created_at,
        )

    def to_header(self) -> Header:
        return Header(
            id=self.id,
            title=self.title,
            segments=list(self.segments),
            summary=self.summary,
            locked=self.locked,
            sub_headers=[
                SubHeader(
                    id=sub.id,
                    title=sub.title,
                    parent_id=sub.parent_id,
                    segments=list(sub.segments),
                    summary=sub.summary,
                    created_at=sub.timestamp,
                )
                for sub in self.sub_headers
            ],
            created_at=self.timestamp,
        )


class OutlineRecord(BaseModel):
    """The full metadata snapshot."""

    model_config = _WIRE_CONFIG

    transcript_file: str
    version: str = METADATA_VERSION
    segments: list[SegmentRecord] = Field(default_factory=list)
    headers: list[HeaderRecord] = Field(default_factory=list)
    last_modified: str = Field(default_factory=utc_now_iso)
    current_header_id: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _null_collections(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for key in ("segments", "headers"):
                if data.get(key) is None:
                    data[key] = []
        return data

    @classmethod
    def from_outline(cls, outline: Outline) -> OutlineRecord:
        return cls(
            transcript_file=outline.transcript_file,
            version=outline.version,
            segments=[SegmentRecord.from_segment(s) for s in outline.segments],
            headers=[HeaderRecord.from_header(h) for h in outline.headers],
            last_modified=outline.last_modified,
            current_header_id=outline.current_header_id,
        )

    def to_outline(self) -> Outline:
        headers = [h.to_header() for h in self.headers]
        current = self.current_header_id
        if current is None and headers:
            current = headers[-1].id
        return Outline(
            transcript_file=self.transcript_file,
            segments=[s.to_segment() for s in self.segments],
            headers=headers,
            current_header_id=current,
            last_modified=self.last_modified,
            version=self.version,
        )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict in the on-disk camelCase layout."""
        data = self.model_dump(mode="json", by_alias=True)
        for segment in data["segments"]:
            if segment.get("splitFrom") is None:
                segment.pop("splitFrom", None)
        if data.get("currentHeaderId") is None:
            data.pop("currentHeaderId", None)
        return data
