"""Conservative fallbacks for a fallible oracle."""

from __future__ import annotations

import logging

from topic_outline.errors import OracleError
from topic_outline.oracle.base import TopicOracle
from topic_outline.oracle.decisions import Decision, EvolveChoice, Fit, New

logger = logging.getLogger(__name__)

DEFAULT_HEADER_TITLE = "Meeting Topic"
DEFAULT_SUBHEADER_TITLE = "Sub-topic"


def truncate_concat(existing: str, new: str, limit: int = 500) -> str:
    """Concatenate two summaries, truncating to ``limit`` characters plus ``...``."""
    combined = f"{existing} {new}"
    if len(combined) > limit:
        return combined[:limit] + "..."
    return combined


class GuardedOracle:
    """Wraps an oracle so a failed call never drops or misfiles content.

    Classification failures become ``New`` (prefer a new topic over a silent
    misfiling), relatedness failures become "unrelated", evolution-choice
    failures become ``EVOLVE``, and summary failures fall back to
    truncate-and-concatenate. A failed meeting summary keeps the previous
    one, or starts from the truncated transcript when there is none.
    """

    def __init__(self, inner: TopicOracle, summary_fallback_chars: int = 500) -> None:
        self.inner = inner
        self.summary_fallback_chars = summary_fallback_chars

    def classify(
        self,
        content: str,
        word_range: tuple[int, int],
        header_title: str,
        header_summary: str,
    ) -> Decision:
        try:
            return self.inner.classify(content, word_range, header_title, header_summary)
        except OracleError as exc:
            logger.warning("Classification failed (%s); treating segment as NEW", exc)
            return New()

    def fits_subheader(
        self, content: str, subheader_summary: str, subheader_title: str
    ) -> Fit | New:
        try:
            return self.inner.fits_subheader(content, subheader_summary, subheader_title)
        except OracleError as exc:
            logger.warning("Sub-header fit check failed (%s); treating as NEW", exc)
            return New()

    def related_to_main_topic(self, content: str, header_title: str) -> bool:
        try:
            return self.inner.related_to_main_topic(content, header_title)
        except OracleError as exc:
            logger.warning("Relatedness check failed (%s); treating as unrelated", exc)
            return False

    def choose_evolution(
        self,
        content: str,
        header_title: str,
        header_summary: str,
        proposed_title: str,
    ) -> EvolveChoice:
        try:
            return self.inner.choose_evolution(
                content, header_title, header_summary, proposed_title
            )
        except OracleError as exc:
            logger.warning("Evolution choice failed (%s); evolving header", exc)
            return EvolveChoice.EVOLVE

    def header_title(self, content: str) -> str:
        try:
            return self.inner.header_title(content)
        except OracleError as exc:
            logger.warning("Header title generation failed (%s)", exc)
            return DEFAULT_HEADER_TITLE

    def subheader_title(self, content: str, main_title: str) -> str:
        try:
            return self.inner.subheader_title(content, main_title)
        except OracleError as exc:
            logger.warning("Sub-header title generation failed (%s)", exc)
            return DEFAULT_SUBHEADER_TITLE

    def compress(self, existing_summary: str, new_content: str) -> str:
        try:
            return self.inner.compress(existing_summary, new_content)
        except OracleError as exc:
            logger.warning("Summary compression failed (%s); truncating", exc)
            return truncate_concat(existing_summary, new_content, self.summary_fallback_chars)

    def summarize_meeting(self, transcript: str, existing_summary: str) -> str:
        try:
            return self.inner.summarize_meeting(transcript, existing_summary)
        except OracleError as exc:
            logger.warning("Meeting summary failed (%s); truncating", exc)
            if existing_summary.strip():
                return existing_summary
            return truncate_concat("", transcript, self.summary_fallback_chars).strip()
