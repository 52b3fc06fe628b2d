"""Data models for the topic outline: segments, headers and the owning aggregate."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from topic_outline.errors import HeaderLocked, MissingReference
from topic_outline.outline_config import SegmentSource

METADATA_VERSION = "1.0"


def utc_now_iso() -> str:
    """ISO-8601 timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass
class Segment:
    """A contiguous, inclusive word range of the transcript."""

    id: str
    start_word_index: int
    end_word_index: int
    created_at: str = field(default_factory=utc_now_iso)
    source: SegmentSource = SegmentSource.OTHER
    split_from: str | None = None

    @property
    def word_count(self) -> int:
        return self.end_word_index - self.start_word_index + 1


@dataclass
class SubHeader:
    """A topic bucket nested under one header. Never locks."""

    id: str
    title: str
    parent_id: str
    segments: list[str] = field(default_factory=list)
    summary: str = ""
    created_at: str = field(default_factory=utc_now_iso)


@dataclass
class Header:
    """A top-level topic bucket.

    Once ``locked`` is set the title and summary are frozen; segments and
    sub-headers may still grow.
    """

    id: str
    title: str
    segments: list[str] = field(default_factory=list)
    summary: str = ""
    locked: bool = False
    sub_headers: list[SubHeader] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)

    def rename(self, title: str) -> None:
        if self.locked:
            raise HeaderLocked(f"Header {self.id} is locked; cannot rename to {title!r}")
        self.title = title

    def set_summary(self, summary: str) -> None:
        if self.locked:
            raise HeaderLocked(f"Header {self.id} is locked; summary is frozen")
        self.summary = summary

    def lock_if_full(self, threshold: int) -> bool:
        """Lock the header once it holds ``threshold`` segments. Returns True on transition."""
        if not self.locked and len(self.segments) >= threshold:
            self.locked = True
            return True
        return False


@dataclass
class Outline:
    """The durable aggregate: segments plus the header/sub-header tree."""

    transcript_file: str
    segments: list[Segment] = field(default_factory=list)
    headers: list[Header] = field(default_factory=list)
    current_header_id: str | None = None
    last_modified: str = field(default_factory=utc_now_iso)
    version: str = METADATA_VERSION

    def get_segment(self, segment_id: str) -> Segment:
        for segment in self.segments:
            if segment.id == segment_id:
                return segment
        raise MissingReference(f"Segment {segment_id} not found")

    def get_header(self, header_id: str) -> Header:
        for header in self.headers:
            if header.id == header_id:
                return header
        raise MissingReference(f"Header {header_id} not found")

    @property
    def current_header(self) -> Header | None:
        if self.current_header_id is None:
            return None
        return self.get_header(self.current_header_id)

    def owner_of(self, segment_id: str) -> tuple[Header, SubHeader | None] | None:
        """Return the (header, sub-header) owning a segment id, or None."""
        for header in self.headers:
            if segment_id in header.segments:
                return header, None
            for sub in header.sub_headers:
                if segment_id in sub.segments:
                    return header, sub
        return None

    def covered_word_count(self) -> int:
        """Number of leading transcript words already covered by segments."""
        if not self.segments:
            return 0
        return max(s.end_word_index for s in self.segments) + 1
