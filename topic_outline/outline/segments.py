"""Segment store: the single writer of the segment list."""

from __future__ import annotations

import logging
from collections.abc import Callable

from topic_outline.errors import InvalidSegmentRange, InvalidSplitPoint
from topic_outline.outline.models import Header, Outline, Segment, new_id, utc_now_iso
from topic_outline.outline_config import SegmentSource
from topic_outline.persistence.metadata_store import MetadataStore

logger = logging.getLogger(__name__)


class SegmentStore:
    """Creates, splits and replaces segments in the outline.

    ``on_live_segment`` is called for every segment added with
    ``source=live-transcription``; back-filled segments are only stored and
    classified later, explicitly, in creation order.
    """

    def __init__(
        self,
        metadata: MetadataStore,
        on_live_segment: Callable[[Segment], None] | None = None,
    ) -> None:
        self.metadata = metadata
        self.on_live_segment = on_live_segment

    @property
    def outline(self) -> Outline:
        return self.metadata.outline

    def add_segment(
        self,
        start_word_index: int,
        end_word_index: int,
        source: SegmentSource | str = SegmentSource.OTHER,
    ) -> Segment:
        """Append a segment covering ``[start, end]`` and persist it."""
        if start_word_index < 0 or start_word_index > end_word_index:
            raise InvalidSegmentRange(
                f"Invalid segment range {start_word_index}-{end_word_index}"
            )
        segment = Segment(
            id=new_id("segment"),
            start_word_index=start_word_index,
            end_word_index=end_word_index,
            source=SegmentSource(source),
        )
        self.outline.segments.append(segment)
        self.metadata.checkpoint()
        logger.info(
            "Added segment %s (%d-%d, source: %s)",
            segment.id,
            start_word_index,
            end_word_index,
            segment.source.value,
        )

        if segment.source is SegmentSource.LIVE_TRANSCRIPTION and self.on_live_segment:
            self.on_live_segment(segment)
        return segment

    def segment_range(
        self,
        start_word_index: int,
        end_word_index: int,
        window: int = 50,
        source: SegmentSource = SegmentSource.INITIAL_LOAD,
    ) -> list[Segment]:
        """Chunk ``[start, end]`` into fixed ``window``-word segments.

        Used for back-filling existing transcript content; nothing is
        classified here.
        """
        if window <= 0:
            raise ValueError("window must be positive")
        created: list[Segment] = []
        start = start_word_index
        while start <= end_word_index:
            end = min(start + window - 1, end_word_index)
            segment = Segment(
                id=new_id("segment"),
                start_word_index=start,
                end_word_index=end,
                source=source,
            )
            self.outline.segments.append(segment)
            created.append(segment)
            start = end + 1

        if created:
            self.metadata.checkpoint()
            logger.info(
                "Created %d segments for words %d-%d",
                len(created),
                start_word_index,
                end_word_index,
            )
        return created

    def split_segment_at_word_index(
        self, segment: Segment, split_word_index: int
    ) -> tuple[Segment, Segment]:
        """Split into ``[start, idx-1]`` and ``[idx, end]``.

        Nothing is stored; :meth:`update_after_split` commits the result.
        """
        if (
            split_word_index <= segment.start_word_index
            or split_word_index > segment.end_word_index
        ):
            raise InvalidSplitPoint(
                f"Invalid split point {split_word_index} for segment "
                f"{segment.start_word_index}-{segment.end_word_index}"
            )

        first = Segment(
            id=f"{segment.id}-part1",
            start_word_index=segment.start_word_index,
            end_word_index=split_word_index - 1,
            created_at=segment.created_at,
            source=segment.source,
            split_from=segment.id,
        )
        second = Segment(
            id=f"{segment.id}-part2",
            start_word_index=split_word_index,
            end_word_index=segment.end_word_index,
            created_at=utc_now_iso(),
            source=segment.source,
            split_from=segment.id,
        )
        logger.info(
            "Split segment %s into %s (%d-%d) and %s (%d-%d)",
            segment.id,
            first.id,
            first.start_word_index,
            first.end_word_index,
            second.id,
            second.start_word_index,
            second.end_word_index,
        )
        return first, second

    def update_after_split(
        self,
        original: Segment,
        first: Segment,
        second: Segment,
        header_id_for_first: str,
        header_id_for_second: str,
    ) -> None:
        """Replace ``original`` by its two halves everywhere.

        The halves take the original's place in the segment list; the
        original id is dropped from every header and sub-header; a half not
        yet owned by any container is appended to its target header.
        Repeating the call with the same arguments changes nothing.
        """
        outline = self.outline
        target_first = outline.get_header(header_id_for_first)
        target_second = outline.get_header(header_id_for_second)

        with self.metadata.deferred_save():
            ids = [s.id for s in outline.segments]
            if original.id in ids:
                position = ids.index(original.id)
                outline.segments.pop(position)
            else:
                position = len(outline.segments)
            for offset, half in enumerate((first, second)):
                if all(s.id != half.id for s in outline.segments):
                    outline.segments.insert(position + offset, half)

            for header in outline.headers:
                _discard(header.segments, original.id)
                for sub in header.sub_headers:
                    _discard(sub.segments, original.id)

            _ensure_owned(outline, target_first, first.id)
            _ensure_owned(outline, target_second, second.id)
            self.metadata.save()

        logger.info("Updated metadata after splitting segment %s", original.id)

    def unassigned(self) -> list[Segment]:
        """Segments not owned by any header or sub-header, in creation order."""
        owned: set[str] = set()
        for header in self.outline.headers:
            owned.update(header.segments)
            for sub in header.sub_headers:
                owned.update(sub.segments)
        return [s for s in self.outline.segments if s.id not in owned]


def _discard(ids: list[str], segment_id: str) -> None:
    while segment_id in ids:
        ids.remove(segment_id)


def _ensure_owned(outline: Outline, header: Header, segment_id: str) -> None:
    if outline.owner_of(segment_id) is None:
        header.segments.append(segment_id)
