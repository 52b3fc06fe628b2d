"""Routing of segments to sub-headers under a main header."""

from __future__ import annotations

from topic_outline.oracle.decisions import Fit
from topic_outline.organizer.editor import TreeEditor
from topic_outline.outline.models import Header, Segment, SubHeader


class SubHeaderAssigner:
    """Files a segment under the first sub-header that accepts it, or a new one.

    Sub-headers are tried in creation order. The oracle is asked to be more
    lenient here than for main headers.
    """

    def __init__(self, editor: TreeEditor) -> None:
        self.editor = editor

    def assign(self, header: Header, segment: Segment) -> SubHeader:
        content = self.editor.content(segment)
        oracle = self.editor.oracle

        for sub in header.sub_headers:
            decision = oracle.fits_subheader(content, sub.summary, sub.title)
            if isinstance(decision, Fit):
                self.editor.fit_sub_header(sub, segment, content)
                return sub

        return self.editor.create_sub_header(header, segment, content)
