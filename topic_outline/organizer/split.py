"""Split resolver: applies an in-segment topic boundary."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from topic_outline.errors import InvalidSplitPoint
from topic_outline.oracle.decisions import New, Split
from topic_outline.organizer.editor import TreeEditor
from topic_outline.organizer.subheaders import SubHeaderAssigner
from topic_outline.outline.models import Header, Segment
from topic_outline.outline.segments import SegmentStore

logger = logging.getLogger(__name__)


@dataclass
class SplitOutcome:
    """Where the two halves of a split segment ended up."""

    first: Segment
    second: Segment
    first_header_id: str
    second_header_id: str


class SplitResolver:
    """Turns a ``Split`` decision into two segments filed in the tree.

    The first half joins the current header as a FIT. The second half opens a
    new header (``New``), evolves the current one while it is still OPEN, or
    falls back to sub-header assignment once it has locked. The whole split
    is committed as one snapshot.
    """

    def __init__(
        self,
        segments: SegmentStore,
        editor: TreeEditor,
        sub_headers: SubHeaderAssigner,
    ) -> None:
        self.segments = segments
        self.editor = editor
        self.sub_headers = sub_headers

    def resolve(self, segment: Segment, decision: Split, header: Header) -> SplitOutcome | None:
        """Apply the split; returns None when the split point is rejected."""
        try:
            first, second = self.segments.split_segment_at_word_index(
                segment, decision.split_word_index
            )
        except InvalidSplitPoint as exc:
            logger.warning("Abandoning split of %s: %s", segment.id, exc)
            return None

        with self.editor.metadata.deferred_save():
            self.editor.fit(header, first)

            second_part = decision.second_part
            if isinstance(second_part, New):
                second_header_id = self.editor.create_new_header(second).id
            elif not header.locked:
                self.editor.evolve(header, second, second_part.new_title)
                second_header_id = header.id
            else:
                logger.info(
                    "Header %r locked after first half; routing %s to a sub-header",
                    header.title,
                    second.id,
                )
                self.sub_headers.assign(header, second)
                second_header_id = header.id

            self.segments.update_after_split(
                segment, first, second, header.id, second_header_id
            )

        logger.info(
            "Split %s: %s -> %r, %s -> header %s",
            segment.id,
            first.id,
            header.title,
            second.id,
            second_header_id,
        )
        return SplitOutcome(first, second, header.id, second_header_id)
