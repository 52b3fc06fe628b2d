"""Tests for the Claude oracle adapter (the Anthropic client is mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock

import anthropic
import httpx
import pytest
from anthropic.types import TextBlock, ToolUseBlock

from conftest import make_words
from topic_outline.errors import OracleParseFailure, OracleUnavailable
from topic_outline.oracle.claude import ClaudeTopicOracle
from topic_outline.oracle.decisions import Evolve, EvolveChoice, Fit, New, Split

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _reply(text: str) -> MagicMock:
    response = MagicMock()
    response.content = [TextBlock(type="text", text=text)]
    return response


def _status_error(code: int) -> anthropic.APIStatusError:
    return anthropic.APIStatusError(
        f"status {code}", response=httpx.Response(code, request=_REQUEST), body=None
    )


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def oracle(test_settings, client, sleeps) -> ClaudeTopicOracle:
    return ClaudeTopicOracle(test_settings, client=client, sleep=sleeps.append)


def _prompt(client: MagicMock) -> str:
    return client.messages.create.call_args.kwargs["messages"][0]["content"]


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassify:
    def test_short_segment_uses_simple_prompt(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("FIT")

        decision = oracle.classify(make_words(5), (0, 4), "Budget", "We discussed budget.")

        assert decision == Fit()
        prompt = _prompt(client)
        assert "[0] w0" not in prompt
        assert "w0 w1 w2 w3 w4" in prompt
        assert client.messages.create.call_args.kwargs["max_tokens"] == 100

    def test_short_segment_split_answer_is_a_parse_failure(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("SPLIT:2:NEW")

        with pytest.raises(OracleParseFailure):
            oracle.classify(make_words(5), (0, 4), "Budget", "We discussed budget.")

    def test_long_segment_gets_indexed_words(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("SPLIT:35:EVOLVE: Budget Review")

        decision = oracle.classify(make_words(31, start=20), (20, 50), "Budget", "Summary.")

        assert decision == Split(35, Evolve("Budget Review"))
        prompt = _prompt(client)
        assert "[20] w20 [21] w21" in prompt
        assert "between 21 and 50" in prompt
        assert client.messages.create.call_args.kwargs["max_tokens"] == 150

    @pytest.mark.parametrize("index", [20, 51])
    def test_split_outside_segment_is_rejected(self, oracle, client, index) -> None:
        client.messages.create.return_value = _reply(f"SPLIT:{index}:NEW")

        with pytest.raises(OracleParseFailure):
            oracle.classify(make_words(31, start=20), (20, 50), "Budget", "Summary.")

    def test_empty_summary_fits_without_a_call(self, oracle, client) -> None:
        assert oracle.classify(make_words(5), (0, 4), "Budget", "  ") == Fit()
        client.messages.create.assert_not_called()

    def test_empty_content_is_new_without_a_call(self, oracle, client) -> None:
        assert oracle.classify("   ", (0, 0), "Budget", "Summary.") == New()
        client.messages.create.assert_not_called()

    def test_uses_configured_model(self, oracle, client, test_settings) -> None:
        client.messages.create.return_value = _reply("NEW")
        oracle.classify(make_words(5), (0, 4), "Budget", "Summary.")
        assert client.messages.create.call_args.kwargs["model"] == test_settings.llm_model


class TestJudgements:
    def test_fits_subheader(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("FIT")
        assert oracle.fits_subheader("some words", "Sub summary", "Sub") == Fit()

    def test_fits_subheader_without_summary_is_new(self, oracle, client) -> None:
        assert oracle.fits_subheader("some words", "", "Sub") == New()
        client.messages.create.assert_not_called()

    def test_related_to_main_topic(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("YES")
        assert oracle.related_to_main_topic("some words", "Budget") is True
        assert '"Budget"' in _prompt(client)

    def test_choose_evolution(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("SUBHEADER")
        choice = oracle.choose_evolution("some words", "Budget", "", "Budget and Hiring")
        assert choice is EvolveChoice.SUBHEADER
        assert "No summary available" in _prompt(client)


class TestTextMaintenance:
    def test_header_title_is_cleaned(self, oracle, client) -> None:
        client.messages.create.return_value = _reply('"Title: Budget Review"\nExtra line')
        assert oracle.header_title("some words") == "Budget Review"

    def test_subheader_title_mentions_main_topic(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("Hiring Timeline")
        assert oracle.subheader_title("some words", "Budget") == "Hiring Timeline"
        assert '"Budget"' in _prompt(client)

    def test_compress_returns_stripped_text(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("  Shorter summary.  ")
        assert oracle.compress("old", "new") == "Shorter summary."

    def test_compress_rejects_empty_reply(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("   ")
        with pytest.raises(OracleParseFailure):
            oracle.compress("old", "new")

    def test_first_meeting_summary_uses_create_prompt(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("  ## Kickoff\n- scope agreed  ")

        assert oracle.summarize_meeting("w0 w1 w2", "") == "## Kickoff\n- scope agreed"
        prompt = _prompt(client)
        assert "complete transcript so far" in prompt
        assert "CURRENT SUMMARY" not in prompt
        assert client.messages.create.call_args.kwargs["max_tokens"] == 4000

    def test_meeting_summary_update_includes_existing_text(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("## Kickoff\n- scope agreed\n- budget set")

        oracle.summarize_meeting("w0 w1 w2 w3", "## Kickoff\n- scope agreed")

        prompt = _prompt(client)
        assert "CURRENT SUMMARY:\n## Kickoff\n- scope agreed" in prompt
        assert "w0 w1 w2 w3" in prompt

    def test_meeting_summary_rejects_empty_reply(self, oracle, client) -> None:
        client.messages.create.return_value = _reply("\n")
        with pytest.raises(OracleParseFailure):
            oracle.summarize_meeting("w0 w1", "")

    def test_non_text_block_is_a_parse_failure(self, oracle, client) -> None:
        response = MagicMock()
        response.content = [ToolUseBlock(type="tool_use", id="toolu_1", name="x", input={})]
        client.messages.create.return_value = response

        with pytest.raises(OracleParseFailure):
            oracle.header_title("some words")


# ---------------------------------------------------------------------------
# Retries
# ---------------------------------------------------------------------------


class TestRetries:
    def test_overloaded_then_success(self, oracle, client, sleeps) -> None:
        client.messages.create.side_effect = [_status_error(529), _reply("Budget")]

        assert oracle.header_title("some words") == "Budget"
        assert sleeps == [0.5]
        assert client.messages.create.call_count == 2

    def test_timeout_is_retried(self, oracle, client, sleeps) -> None:
        client.messages.create.side_effect = [
            anthropic.APITimeoutError(request=_REQUEST),
            _reply("Budget"),
        ]

        assert oracle.header_title("some words") == "Budget"
        assert sleeps == [0.5]

    def test_exhausted_retries_raise_unavailable(self, oracle, client, sleeps) -> None:
        client.messages.create.side_effect = _status_error(429)

        with pytest.raises(OracleUnavailable):
            oracle.header_title("some words")

        assert client.messages.create.call_count == 3
        assert sleeps == [0.5, 1.0]

    def test_client_error_is_not_retried(self, oracle, client, sleeps) -> None:
        client.messages.create.side_effect = _status_error(400)

        with pytest.raises(OracleUnavailable):
            oracle.header_title("some words")

        assert client.messages.create.call_count == 1
        assert sleeps == []
