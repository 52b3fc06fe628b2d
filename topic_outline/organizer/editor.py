"""Primitive mutations of the header tree shared by the organizer components."""

from __future__ import annotations

import logging

from topic_outline.outline.models import Header, Outline, Segment, SubHeader, new_id
from topic_outline.outline_config import OrganizerConfig
from topic_outline.oracle.base import TopicOracle
from topic_outline.persistence.metadata_store import MetadataStore
from topic_outline.transcript.words import WordRangeIndex, expanded_range

logger = logging.getLogger(__name__)


class TreeEditor:
    """Creates headers and sub-headers, files segments and maintains summaries.

    Enforces the lock rule: the lock threshold is checked after every
    insertion, and a locked header's title and summary are never touched.
    Each operation ends with a metadata checkpoint.
    """

    def __init__(
        self,
        metadata: MetadataStore,
        words: WordRangeIndex,
        oracle: TopicOracle,
        config: OrganizerConfig,
    ) -> None:
        self.metadata = metadata
        self.words = words
        self.oracle = oracle
        self.config = config

    @property
    def outline(self) -> Outline:
        return self.metadata.outline

    def content(self, segment: Segment) -> str:
        return self.words.text(segment.start_word_index, segment.end_word_index)

    # -- headers -------------------------------------------------------------

    def create_first_header(self, segment: Segment) -> Header:
        """Seed the outline from the very first segment's own text."""
        content = self.content(segment)
        return self._add_header(segment, self.oracle.header_title(content), content)

    def create_new_header(self, segment: Segment) -> Header:
        """Open a header for a new topic, titled from 20 words of left context."""
        start, end = expanded_range(
            segment.start_word_index,
            segment.end_word_index,
            self.config.context_overlap_words,
        )
        context = self.words.text(start, end)
        logger.debug(
            "Expanded context for %s: %d-%d (segment %d-%d)",
            segment.id,
            start,
            end,
            segment.start_word_index,
            segment.end_word_index,
        )
        return self._add_header(segment, self.oracle.header_title(context), context)

    def _add_header(self, segment: Segment, title: str, summary: str) -> Header:
        header = Header(id=new_id("header"), title=title, segments=[segment.id], summary=summary)
        self.outline.headers.append(header)
        self.outline.current_header_id = header.id
        self._check_lock(header)
        self.metadata.checkpoint()
        logger.info("Created header %r for segment %s", title, segment.id)
        return header

    def fit(self, header: Header, segment: Segment, content: str | None = None) -> None:
        """Append a segment to a header; refresh the summary unless locked."""
        content = self.content(segment) if content is None else content
        _append_unique(header.segments, segment.id)
        if not header.locked:
            header.set_summary(
                self._merge_summary(header.summary, content, self.config.header_summary_max_chars)
            )
        self._check_lock(header)
        self.metadata.checkpoint()
        logger.info(
            "Assigned segment %s to %sheader %r",
            segment.id,
            "locked " if header.locked else "",
            header.title,
        )

    def evolve(
        self, header: Header, segment: Segment, new_title: str, content: str | None = None
    ) -> None:
        """Retitle an OPEN header and append the segment to it."""
        content = self.content(segment) if content is None else content
        old_title = header.title
        header.rename(new_title)
        _append_unique(header.segments, segment.id)
        header.set_summary(
            self._merge_summary(header.summary, content, self.config.header_summary_max_chars)
        )
        self._check_lock(header)
        self.metadata.checkpoint()
        logger.info("Evolved header %r -> %r", old_title, new_title)

    def _check_lock(self, header: Header) -> None:
        if header.lock_if_full(self.config.lock_threshold):
            logger.info(
                "Locked header %r after reaching %d segments",
                header.title,
                len(header.segments),
            )

    # -- sub-headers ---------------------------------------------------------

    def create_sub_header(self, header: Header, segment: Segment, content: str) -> SubHeader:
        title = self.oracle.subheader_title(content, header.title)
        sub = SubHeader(
            id=new_id("subheader"),
            title=title,
            parent_id=header.id,
            segments=[segment.id],
            summary=content,
        )
        header.sub_headers.append(sub)
        self.metadata.checkpoint()
        logger.info("Created sub-header %r under %r", title, header.title)
        return sub

    def fit_sub_header(self, sub: SubHeader, segment: Segment, content: str) -> None:
        _append_unique(sub.segments, segment.id)
        sub.summary = self._merge_summary(
            sub.summary, content, self.config.subheader_summary_max_chars
        )
        self.metadata.checkpoint()
        logger.info("Assigned segment %s to sub-header %r", segment.id, sub.title)

    # -- summaries -----------------------------------------------------------

    def _merge_summary(self, current: str, new_content: str, limit: int) -> str:
        """Append new content, compressing once the summary outgrows ``limit``."""
        combined = f"{current} {new_content}".strip()
        if len(current) > limit or len(combined) > limit:
            return self.oracle.compress(current, new_content)
        return combined


def _append_unique(ids: list[str], segment_id: str) -> None:
    if segment_id not in ids:
        ids.append(segment_id)
