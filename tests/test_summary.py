"""Tests for the rolling meeting summary file."""

from __future__ import annotations

import pytest

from conftest import FailingOracle
from topic_outline.errors import PersistenceFailure
from topic_outline.oracle.guarded import GuardedOracle
from topic_outline.oracle.scripted import ScriptedTopicOracle
from topic_outline.summary.meeting_summary import MeetingSummary, summary_path_for


@pytest.fixture
def summary_path(tmp_path):
    return summary_path_for(tmp_path / "meeting.txt")


def test_summary_path_sits_beside_transcript(tmp_path) -> None:
    assert summary_path_for(tmp_path / "meeting.txt") == tmp_path / "meeting_summary.md"


class TestLoad:
    def test_missing_file_is_created_blank(self, summary_path) -> None:
        summary = MeetingSummary(summary_path, ScriptedTopicOracle())

        assert summary.load() == ""
        assert summary_path.read_text() == ""

    def test_existing_summary_is_read(self, summary_path) -> None:
        summary_path.write_text("## Budget\n- approved\n")
        summary = MeetingSummary(summary_path, ScriptedTopicOracle())

        assert summary.load() == "## Budget\n- approved"

    def test_unwritable_location_raises(self, tmp_path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file where a directory should be")
        summary = MeetingSummary(blocker / "meeting_summary.md", ScriptedTopicOracle())

        with pytest.raises(PersistenceFailure):
            summary.load()


class TestRefresh:
    def test_first_refresh_creates_then_later_ones_update(self, summary_path) -> None:
        oracle = ScriptedTopicOracle(meeting_summaries=["## Kickoff", "## Kickoff\n- budget"])
        summary = MeetingSummary(summary_path, oracle)
        summary.load()

        assert summary.refresh("w0 w1 w2") == "## Kickoff"
        assert summary.refresh("w0 w1 w2 w3 w4") == "## Kickoff\n- budget"

        calls = [args for name, args in oracle.calls if name == "summarize_meeting"]
        assert calls == [("w0 w1 w2", ""), ("w0 w1 w2 w3 w4", "## Kickoff")]
        assert summary_path.read_text() == "## Kickoff\n- budget"

    def test_blank_transcript_skips_the_oracle(self, summary_path) -> None:
        oracle = ScriptedTopicOracle()
        summary = MeetingSummary(summary_path, oracle)

        assert summary.refresh("  \n") == ""
        assert oracle.calls == []
        assert not summary_path.exists()

    def test_failed_oracle_keeps_previous_summary(self, summary_path) -> None:
        summary_path.write_text("## Budget")
        summary = MeetingSummary(summary_path, GuardedOracle(FailingOracle()))
        summary.load()

        assert summary.refresh("w0 w1 w2") == "## Budget"
        assert summary_path.read_text() == "## Budget"

    def test_failed_first_summary_falls_back_to_transcript(self, summary_path) -> None:
        summary = MeetingSummary(
            summary_path, GuardedOracle(FailingOracle(), summary_fallback_chars=10)
        )

        assert summary.refresh("abcdefghijklmnop") == "abcdefghi..."
