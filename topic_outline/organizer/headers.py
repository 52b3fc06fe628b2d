"""Header organizer: assigns each segment to exactly one place in the tree."""

from __future__ import annotations

import logging

from topic_outline.oracle.base import TopicOracle
from topic_outline.oracle.decisions import Evolve, EvolveChoice, Fit, Split
from topic_outline.oracle.guarded import GuardedOracle
from topic_outline.organizer.editor import TreeEditor
from topic_outline.organizer.split import SplitResolver
from topic_outline.organizer.subheaders import SubHeaderAssigner
from topic_outline.outline.models import Header, Outline, Segment
from topic_outline.outline.segments import SegmentStore
from topic_outline.outline_config import OrganizerConfig
from topic_outline.persistence.metadata_store import MetadataStore
from topic_outline.transcript.words import WordRangeIndex

logger = logging.getLogger(__name__)


class HeaderOrganizer:
    """State machine filing segments under the current header.

    Segments must be processed one at a time in creation order: the
    "current header" rule depends on a total order. The oracle is wrapped in
    :class:`GuardedOracle`, so oracle failures degrade to NEW.
    """

    def __init__(
        self,
        metadata: MetadataStore,
        segments: SegmentStore,
        words: WordRangeIndex,
        oracle: TopicOracle,
        config: OrganizerConfig | None = None,
        summary_fallback_chars: int = 500,
    ) -> None:
        self.config = config or OrganizerConfig()
        self.oracle = (
            oracle
            if isinstance(oracle, GuardedOracle)
            else GuardedOracle(oracle, summary_fallback_chars)
        )
        self.editor = TreeEditor(metadata, words, self.oracle, self.config)
        self.sub_headers = SubHeaderAssigner(self.editor)
        self.splitter = SplitResolver(segments, self.editor, self.sub_headers)

    @property
    def outline(self) -> Outline:
        return self.editor.outline

    def process(self, segment: Segment) -> None:
        """Classify one segment and file it."""
        if self.outline.owner_of(segment.id) is not None:
            logger.debug("Segment %s already assigned; skipping", segment.id)
            return

        candidate = self.outline.current_header
        if candidate is None:
            self.editor.create_first_header(segment)
            return

        content = self.editor.content(segment)
        decision = self.oracle.classify(
            content,
            (segment.start_word_index, segment.end_word_index),
            candidate.title,
            candidate.summary,
        )

        if isinstance(decision, Fit):
            self.editor.fit(candidate, segment, content)
        elif isinstance(decision, Evolve) and not candidate.locked:
            if self._prefers_sub_header(candidate, content, decision.new_title):
                logger.info("Creating sub-header instead of evolving %r", candidate.title)
                self.sub_headers.assign(candidate, segment)
            else:
                self.editor.evolve(candidate, segment, decision.new_title, content)
        elif isinstance(decision, Evolve):
            logger.info("Header %r is locked; trying sub-headers", candidate.title)
            self.sub_headers.assign(candidate, segment)
        elif isinstance(decision, Split):
            if self.splitter.resolve(segment, decision, candidate) is None:
                self._handle_new(candidate, segment, content)
        else:
            self._handle_new(candidate, segment, content)

    def _handle_new(self, candidate: Header, segment: Segment, content: str) -> None:
        if self.oracle.related_to_main_topic(content, candidate.title):
            self.sub_headers.assign(candidate, segment)
        else:
            self.editor.create_new_header(segment)

    def _prefers_sub_header(self, header: Header, content: str, proposed_title: str) -> bool:
        policy = self.config.evolve_policy
        if policy.prefer_subheader_when_nested and header.sub_headers:
            return True
        if (
            policy.subheader_min_segments is not None
            and len(header.segments) >= policy.subheader_min_segments
        ):
            return True
        if not policy.consult_oracle:
            return False
        choice = self.oracle.choose_evolution(
            content, header.title, header.summary, proposed_title
        )
        return choice is EvolveChoice.SUBHEADER
