"""Organizer configuration: segment sources, evolution policy and tunables."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from topic_outline.config import Settings


class SegmentSource(str, Enum):
    """Provenance of a segment."""

    LIVE_TRANSCRIPTION = "live-transcription"
    INITIAL_LOAD = "initial-load"
    OTHER = "other"

    @classmethod
    def _missing_(cls, value: object) -> SegmentSource:
        # Older metadata files carry free-form sources such as "unknown".
        return cls.OTHER


@dataclass(frozen=True)
class EvolvePolicy:
    """When an OPEN header is asked to evolve, decide whether a sub-header is preferable.

    A sub-header wins when the header already has sub-headers (keeps the tree
    consistent) or already holds ``subheader_min_segments`` segments. Otherwise
    the oracle is consulted when ``consult_oracle`` is set; without it the
    header evolves. ``subheader_min_segments=None`` disables the segment rule.
    """

    prefer_subheader_when_nested: bool = True
    subheader_min_segments: int | None = 2
    consult_oracle: bool = True


@dataclass(frozen=True)
class OrganizerConfig:
    """Immutable tunables for the header organizer.

    Defaults mirror the behaviour of the live outline: 3-segment lock,
    20 words of left context for new topics, 50-word back-fill windows.
    """

    lock_threshold: int = 3
    context_overlap_words: int = 20
    backfill_window_words: int = 50
    header_summary_max_chars: int = 200
    subheader_summary_max_chars: int = 300
    evolve_policy: EvolvePolicy = field(default_factory=EvolvePolicy)

    @classmethod
    def from_settings(cls, settings: Settings) -> OrganizerConfig:
        return cls(
            lock_threshold=settings.lock_threshold,
            context_overlap_words=settings.context_overlap_words,
            backfill_window_words=settings.backfill_window_words,
            header_summary_max_chars=settings.header_summary_max_chars,
            subheader_summary_max_chars=settings.subheader_summary_max_chars,
            evolve_policy=EvolvePolicy(
                prefer_subheader_when_nested=settings.evolve_prefer_subheader_when_nested,
                subheader_min_segments=settings.evolve_subheader_min_segments,
                consult_oracle=settings.evolve_consult_oracle,
            ),
        )
