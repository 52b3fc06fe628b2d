"""Claude-powered topic oracle."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import anthropic
from anthropic import Anthropic
from anthropic.types import TextBlock

from topic_outline.config import Settings, settings as default_settings
from topic_outline.errors import OracleParseFailure, OracleUnavailable
from topic_outline.oracle.decisions import Decision, EvolveChoice, Fit, New, Split
from topic_outline.oracle.parsing import (
    parse_classification,
    parse_evolve_choice,
    parse_fit_or_new,
    parse_title,
    parse_yes_no,
)
from topic_outline.transcript.words import tokenize

logger = logging.getLogger(__name__)

# HTTP statuses worth retrying: rate limit, internal error, unavailable, overloaded
TRANSIENT_STATUS_CODES = frozenset({429, 500, 503, 529})

CLASSIFY_PROMPT = """\
You are organizing a live meeting transcript into topics.

CURRENT HEADER: "{title}"

SUMMARY OF THE DISCUSSION SO FAR:
{summary}

NEW SEGMENT:
{content}

Decide how the new segment relates to the current header. Respond with exactly one of:
- "FIT" if it belongs under the current header as it is
- "EVOLVE: <new header title>" if it belongs here but the header should be broadened (3-8 words)
- "NEW" if it starts a different topic

Respond with ONLY the action, no explanations."""

SPLIT_PROMPT = """\
You are organizing a live meeting transcript into topics and detecting topic boundaries.

CURRENT HEADER: "{title}"

SUMMARY OF THE DISCUSSION SO FAR:
{summary}

NEW SEGMENT (each word prefixed with its position):
{indexed}

Respond with exactly one of:
- "FIT" if the whole segment belongs under the current header
- "NEW" if the whole segment is a different topic
- "EVOLVE: <new header title>" if the whole segment broadens the current topic
- "SPLIT:<word_position>:NEW" or "SPLIT:<word_position>:EVOLVE: <title>" if a new topic \
starts inside the segment; word_position is the first word of the new topic and must be \
between {first_split} and {last} inclusive

Only use SPLIT for a clear boundary. Respond with ONLY the action, no explanations."""

SUBHEADER_FIT_PROMPT = """\
Does this new meeting segment fit under an existing sub-topic?

SUB-HEADER: "{title}"

EXISTING SUB-HEADER CONTENT:
{summary}

NEW SEGMENT:
{content}

Sub-headers are broad: prefer "FIT" when the segment is a related detail or continuation. \
Answer "NEW" only for a genuinely different sub-topic.

Respond with only "FIT" or "NEW"."""

RELATED_PROMPT = """\
Is this meeting segment broadly related to the main topic? It does not need to fit \
perfectly, only belong to the same general discussion area.

MAIN TOPIC: "{title}"

NEW SEGMENT:
{content}

Respond with only "YES" or "NO"."""

EVOLUTION_PROMPT = """\
A meeting segment expands the current header. Choose how to organize it.

CURRENT HEADER: "{title}"

HEADER CONTENT:
{summary}

NEW SEGMENT:
{content}

PROPOSED EVOLVED HEADER: "{proposed}"

Respond "EVOLVE" to broaden the main header to the proposed title, or "SUBHEADER" to keep \
the header focused and file the segment under a sub-header.

Respond with only "EVOLVE" or "SUBHEADER"."""

HEADER_TITLE_PROMPT = """\
Write a concise header (3-8 words) naming the main topic, decision or discussion point \
of this meeting excerpt. No quotes, no formatting.

MEETING EXCERPT:
{content}

Respond with ONLY the header title."""

SUBHEADER_TITLE_PROMPT = """\
Write a concise sub-header (3-6 words) for this meeting content. It should be specific to \
the content and complement the main topic.

MAIN TOPIC: "{main_title}"

CONTENT:
{content}

Respond with ONLY the sub-header title."""

COMPRESS_PROMPT = """\
Compress this meeting discussion summary while keeping all key information.

CURRENT SUMMARY:
{summary}

NEW CONTENT TO INTEGRATE:
{content}

Write one concise summary (max 400 words) combining both, keeping technical details \
and decisions. Provide ONLY the summary."""

MEETING_SUMMARY_PROMPT = """\
You are writing a technical meeting summary. This is the complete transcript so far:

{transcript}

Only summarize what was explicitly said; do not infer or extrapolate. Use the speakers' \
own terminology. Add a "Questions for Further Investigation" section only for topics that \
were mentioned but need clarification.

Provide ONLY the summary in Markdown."""

MEETING_SUMMARY_UPDATE_PROMPT = """\
Update this technical meeting summary so it covers the complete transcript.

CURRENT SUMMARY:
{summary}

COMPLETE TRANSCRIPT:
{transcript}

Only summarize what was explicitly said; keep earlier decisions and details unless the \
transcript corrects them.

Provide ONLY the updated summary in Markdown."""


class ClaudeTopicOracle:
    """:class:`~topic_outline.oracle.base.TopicOracle` backed by the Anthropic API.

    Transient API failures are retried with exponential backoff; the SDK's own
    retries are disabled so the attempt count is ours.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: Anthropic | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or default_settings
        self.client = client or Anthropic(
            api_key=self.settings.anthropic_api_key,
            max_retries=0,
            timeout=self.settings.oracle_timeout_seconds,
        )
        self._sleep = sleep

    # -- classification ----------------------------------------------------

    def classify(
        self,
        content: str,
        word_range: tuple[int, int],
        header_title: str,
        header_summary: str,
    ) -> Decision:
        if not content.strip():
            return New()
        # Headers from older metadata have no summary to compare against.
        if not header_summary.strip():
            return Fit()

        words = tokenize(content)
        if len(words) < self.settings.min_split_words:
            prompt = CLASSIFY_PROMPT.format(
                title=header_title, summary=header_summary, content=content
            )
            raw = self._ask(prompt, max_tokens=100)
            decision = parse_classification(raw, allow_split=False)
            logger.info("Topic decision: %s", raw.strip())
            return decision

        start, end = word_range
        indexed = " ".join(f"[{start + i}] {word}" for i, word in enumerate(words))
        prompt = SPLIT_PROMPT.format(
            title=header_title,
            summary=header_summary,
            indexed=indexed,
            first_split=start + 1,
            last=end,
        )
        raw = self._ask(prompt, max_tokens=150)
        decision = parse_classification(raw)
        if isinstance(decision, Split) and not (
            start < decision.split_word_index <= end
        ):
            raise OracleParseFailure(
                f"Split index {decision.split_word_index} outside {start}-{end}", raw
            )
        logger.info("Topic decision with splitting analysis: %s", raw.strip())
        return decision

    def fits_subheader(
        self, content: str, subheader_summary: str, subheader_title: str
    ) -> Fit | New:
        if not content.strip() or not subheader_summary.strip():
            return New()
        prompt = SUBHEADER_FIT_PROMPT.format(
            title=subheader_title, summary=subheader_summary, content=content
        )
        return parse_fit_or_new(self._ask(prompt, max_tokens=50))

    def related_to_main_topic(self, content: str, header_title: str) -> bool:
        prompt = RELATED_PROMPT.format(title=header_title, content=content)
        return parse_yes_no(self._ask(prompt, max_tokens=50))

    def choose_evolution(
        self,
        content: str,
        header_title: str,
        header_summary: str,
        proposed_title: str,
    ) -> EvolveChoice:
        prompt = EVOLUTION_PROMPT.format(
            title=header_title,
            summary=header_summary or "No summary available",
            content=content,
            proposed=proposed_title,
        )
        return parse_evolve_choice(self._ask(prompt, max_tokens=50))

    # -- text maintenance --------------------------------------------------

    def header_title(self, content: str) -> str:
        return parse_title(self._ask(HEADER_TITLE_PROMPT.format(content=content), max_tokens=100))

    def subheader_title(self, content: str, main_title: str) -> str:
        prompt = SUBHEADER_TITLE_PROMPT.format(main_title=main_title, content=content)
        return parse_title(self._ask(prompt, max_tokens=50))

    def compress(self, existing_summary: str, new_content: str) -> str:
        prompt = COMPRESS_PROMPT.format(summary=existing_summary, content=new_content)
        text = self._ask(prompt, max_tokens=600).strip()
        if not text:
            raise OracleParseFailure("Empty summary", text)
        return text

    def summarize_meeting(self, transcript: str, existing_summary: str) -> str:
        if existing_summary.strip():
            prompt = MEETING_SUMMARY_UPDATE_PROMPT.format(
                summary=existing_summary, transcript=transcript
            )
        else:
            prompt = MEETING_SUMMARY_PROMPT.format(transcript=transcript)
        text = self._ask(prompt, max_tokens=4000).strip()
        if not text:
            raise OracleParseFailure("Empty meeting summary", text)
        return text

    # -- transport ---------------------------------------------------------

    def _ask(self, prompt: str, max_tokens: int) -> str:
        response = self._create(
            model=self.settings.llm_model,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        # Narrow the content block type; we always request plain text.
        if not response.content or not isinstance(response.content[0], TextBlock):
            raise OracleParseFailure("Expected a text block from Claude")
        return response.content[0].text

    def _create(self, **kwargs: Any) -> Any:
        """Call ``messages.create`` with exponential backoff on transient errors."""
        attempts = max(1, self.settings.oracle_max_retries)
        delay = self.settings.oracle_initial_backoff
        for attempt in range(1, attempts + 1):
            try:
                return self.client.messages.create(**kwargs)
            except (anthropic.APITimeoutError, anthropic.APIConnectionError) as exc:
                if attempt >= attempts:
                    raise OracleUnavailable(f"Claude unreachable: {exc}") from exc
                logger.warning(
                    "Claude timeout/connection error, retrying in %.1fs (attempt %d/%d)",
                    delay,
                    attempt,
                    attempts,
                )
            except anthropic.APIStatusError as exc:
                if exc.status_code not in TRANSIENT_STATUS_CODES:
                    raise OracleUnavailable(f"Claude error {exc.status_code}: {exc.message}") from exc
                if attempt >= attempts:
                    raise OracleUnavailable(
                        f"Claude still failing with {exc.status_code} after {attempts} attempts"
                    ) from exc
                logger.warning(
                    "Claude %d error, retrying in %.1fs (attempt %d/%d)",
                    exc.status_code,
                    delay,
                    attempt,
                    attempts,
                )
            self._sleep(delay)
            delay *= 2
        raise OracleUnavailable("Claude call not attempted")
