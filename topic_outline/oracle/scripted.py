"""Offline oracle that replays recorded wire responses."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any

from topic_outline.errors import OracleParseFailure, OracleUnavailable
from topic_outline.oracle.decisions import Decision, EvolveChoice, Fit, New
from topic_outline.oracle.parsing import (
    parse_classification,
    parse_evolve_choice,
    parse_fit_or_new,
    parse_title,
    parse_yes_no,
)


class ScriptedTopicOracle:
    """Replays queued raw responses through the same parsers as the Claude adapter.

    Each query type has its own queue. An exhausted classification or
    judgement queue raises :class:`OracleUnavailable`; exhausted title queues
    fall back to numbered titles. Every call is recorded in ``calls``.
    """

    def __init__(
        self,
        classifications: Iterable[str] = (),
        subheader_fits: Iterable[str] = (),
        related: Iterable[str] = (),
        evolution_choices: Iterable[str] = (),
        header_titles: Iterable[str] = (),
        subheader_titles: Iterable[str] = (),
        meeting_summaries: Iterable[str] = (),
    ) -> None:
        self.classifications = deque(classifications)
        self.subheader_fits = deque(subheader_fits)
        self.related = deque(related)
        self.evolution_choices = deque(evolution_choices)
        self.header_titles = deque(header_titles)
        self.subheader_titles = deque(subheader_titles)
        self.meeting_summaries = deque(meeting_summaries)
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._header_count = 0
        self._subheader_count = 0

    def _next(self, queue: deque[str], name: str) -> str:
        if not queue:
            raise OracleUnavailable(f"No scripted response left for {name}")
        return queue.popleft()

    def classify(
        self,
        content: str,
        word_range: tuple[int, int],
        header_title: str,
        header_summary: str,
    ) -> Decision:
        self.calls.append(("classify", (content, word_range, header_title, header_summary)))
        return parse_classification(self._next(self.classifications, "classify"))

    def fits_subheader(
        self, content: str, subheader_summary: str, subheader_title: str
    ) -> Fit | New:
        self.calls.append(("fits_subheader", (content, subheader_summary, subheader_title)))
        return parse_fit_or_new(self._next(self.subheader_fits, "fits_subheader"))

    def related_to_main_topic(self, content: str, header_title: str) -> bool:
        self.calls.append(("related_to_main_topic", (content, header_title)))
        return parse_yes_no(self._next(self.related, "related_to_main_topic"))

    def choose_evolution(
        self,
        content: str,
        header_title: str,
        header_summary: str,
        proposed_title: str,
    ) -> EvolveChoice:
        self.calls.append(
            ("choose_evolution", (content, header_title, header_summary, proposed_title))
        )
        return parse_evolve_choice(self._next(self.evolution_choices, "choose_evolution"))

    def header_title(self, content: str) -> str:
        self.calls.append(("header_title", (content,)))
        self._header_count += 1
        if self.header_titles:
            return parse_title(self.header_titles.popleft())
        return f"Topic {self._header_count}"

    def subheader_title(self, content: str, main_title: str) -> str:
        self.calls.append(("subheader_title", (content, main_title)))
        self._subheader_count += 1
        if self.subheader_titles:
            return parse_title(self.subheader_titles.popleft())
        return f"Sub-topic {self._subheader_count}"

    def compress(self, existing_summary: str, new_content: str) -> str:
        self.calls.append(("compress", (existing_summary, new_content)))
        return f"{existing_summary} {new_content}".strip()

    def summarize_meeting(self, transcript: str, existing_summary: str) -> str:
        self.calls.append(("summarize_meeting", (transcript, existing_summary)))
        summary = self._next(self.meeting_summaries, "summarize_meeting").strip()
        if not summary:
            raise OracleParseFailure("Empty meeting summary", summary)
        return summary

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)
