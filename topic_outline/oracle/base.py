"""The topic oracle capability consumed by the header organizer."""

from __future__ import annotations

from typing import Protocol

from topic_outline.oracle.decisions import Decision, EvolveChoice, Fit, New


class TopicOracle(Protocol):
    """External text-classification capability.

    Adapters raise :class:`~topic_outline.errors.OracleUnavailable` or
    :class:`~topic_outline.errors.OracleParseFailure`; the fallback policy
    lives in :class:`~topic_outline.oracle.guarded.GuardedOracle`.
    """

    def classify(
        self,
        content: str,
        word_range: tuple[int, int],
        header_title: str,
        header_summary: str,
    ) -> Decision: ...

    def fits_subheader(
        self, content: str, subheader_summary: str, subheader_title: str
    ) -> Fit | New: ...

    def related_to_main_topic(self, content: str, header_title: str) -> bool: ...

    def choose_evolution(
        self,
        content: str,
        header_title: str,
        header_summary: str,
        proposed_title: str,
    ) -> EvolveChoice: ...

    def header_title(self, content: str) -> str: ...

    def subheader_title(self, content: str, main_title: str) -> str: ...

    def compress(self, existing_summary: str, new_content: str) -> str: ...

    def summarize_meeting(self, transcript: str, existing_summary: str) -> str: ...
