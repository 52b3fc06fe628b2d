"""Shared fixtures: an in-process outline harness and a failing oracle."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from topic_outline.config import Settings
from topic_outline.errors import OracleUnavailable
from topic_outline.oracle.base import TopicOracle
from topic_outline.organizer.headers import HeaderOrganizer
from topic_outline.outline.models import Outline, Segment
from topic_outline.outline.segments import SegmentStore
from topic_outline.outline_config import OrganizerConfig, SegmentSource
from topic_outline.persistence.metadata_store import MetadataStore
from topic_outline.transcript.words import WordRangeIndex


def make_words(count: int, start: int = 0) -> str:
    """Distinct tokens ``w<start> .. w<start+count-1>``."""
    return " ".join(f"w{i}" for i in range(start, start + count))


class FailingOracle:
    """Every call errors, like an unreachable API."""

    def __getattr__(self, name: str) -> Callable[..., object]:
        def fail(*args: object, **kwargs: object) -> object:
            raise OracleUnavailable(f"{name} unavailable")

        return fail


class Harness:
    """Metadata store, word index, segment store and organizer on a tmp dir."""

    def __init__(self, tmp_path: Path, oracle: TopicOracle, config: OrganizerConfig) -> None:
        self.metadata = MetadataStore(tmp_path / "meeting.meta.json", "meeting.txt")
        self.words = WordRangeIndex()
        self.segments = SegmentStore(self.metadata)
        self.organizer = HeaderOrganizer(
            self.metadata, self.segments, self.words, oracle, config
        )

    @property
    def outline(self) -> Outline:
        return self.metadata.outline

    def add(self, count: int, source: SegmentSource = SegmentSource.OTHER) -> Segment:
        """Append ``count`` new words and store them as one segment."""
        start = self.words.word_count
        word_range = self.words.append(make_words(count, start))
        assert word_range is not None
        return self.segments.add_segment(*word_range, source)

    def feed(self, count: int) -> Segment:
        segment = self.add(count)
        self.organizer.process(segment)
        return segment

    def assert_tiles_transcript(self) -> None:
        ranges = sorted(
            (s.start_word_index, s.end_word_index) for s in self.outline.segments
        )
        expected_start = 0
        for start, end in ranges:
            assert start == expected_start
            assert end >= start
            expected_start = end + 1
        assert expected_start == self.words.word_count

    def assert_single_owner(self) -> None:
        owned: list[str] = []
        for header in self.outline.headers:
            owned.extend(header.segments)
            for sub in header.sub_headers:
                assert sub.parent_id == header.id
                owned.extend(sub.segments)
        assert sorted(owned) == sorted(s.id for s in self.outline.segments)


@pytest.fixture
def make_harness(tmp_path: Path) -> Callable[..., Harness]:
    def factory(oracle: TopicOracle, config: OrganizerConfig | None = None) -> Harness:
        return Harness(tmp_path, oracle, config or OrganizerConfig())

    return factory


@pytest.fixture
def test_settings() -> Settings:
    return Settings(  # type: ignore[call-arg]
        _env_file=None,
        anthropic_api_key="",
        backlog_pause_seconds=0.0,
        oracle_initial_backoff=0.5,
        oracle_max_retries=3,
    )
