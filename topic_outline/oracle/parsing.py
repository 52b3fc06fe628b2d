"""Parsers for the oracle's plain-text wire format.

Raw strings never leave this module: every reply is turned into a
:mod:`~topic_outline.oracle.decisions` value or raises
:class:`~topic_outline.errors.OracleParseFailure`.
"""

from __future__ import annotations

import re

from topic_outline.errors import OracleParseFailure
from topic_outline.oracle.decisions import Decision, Evolve, EvolveChoice, Fit, New, Split

MAX_TITLE_CHARS = 60

_WRAPPING_QUOTES_RE = re.compile(r"^[\"']|[\"']$")
_TITLE_PREFIX_RE = re.compile(r"^(Header:|Title:|Topic:)\s*", re.IGNORECASE)
_SPLIT_RE = re.compile(r"^SPLIT:\s*(\d+)\s*:(.*)$", re.DOTALL)


def clean_title(text: str, max_chars: int = MAX_TITLE_CHARS) -> str:
    """Normalise a model-written title.

    Strips wrapping quotes, keeps the first line, drops a ``Header:`` /
    ``Title:`` / ``Topic:`` prefix and truncates at a word boundary.
    """
    cleaned = _WRAPPING_QUOTES_RE.sub("", text.strip())
    cleaned = cleaned.split("\n")[0]
    cleaned = _TITLE_PREFIX_RE.sub("", cleaned.strip())
    cleaned = _WRAPPING_QUOTES_RE.sub("", cleaned.strip())

    if len(cleaned) > max_chars:
        result = ""
        for word in cleaned.split(" "):
            candidate = f"{result} {word}" if result else word
            if len(candidate) > max_chars:
                break
            result = candidate
        cleaned = result or cleaned[:max_chars]

    return cleaned.strip()


def _parse_evolve(raw: str, payload: str) -> Evolve:
    title = clean_title(payload)
    if not title:
        raise OracleParseFailure("EVOLVE without a title", raw)
    return Evolve(new_title=title)


def parse_classification(raw: str, allow_split: bool = True) -> Decision:
    """Parse ``FIT`` / ``NEW`` / ``EVOLVE: t`` / ``SPLIT:i:NEW`` / ``SPLIT:i:EVOLVE: t``."""
    response = raw.strip()

    if response == "FIT":
        return Fit()
    if response == "NEW":
        return New()
    if response.startswith("EVOLVE:"):
        return _parse_evolve(raw, response[len("EVOLVE:") :])

    if allow_split and response.startswith("SPLIT:"):
        match = _SPLIT_RE.match(response)
        if not match:
            raise OracleParseFailure("Malformed SPLIT response", raw)
        index = int(match.group(1))
        second = match.group(2).strip()
        if second == "NEW":
            return Split(split_word_index=index, second_part=New())
        if second.startswith("EVOLVE:"):
            return Split(
                split_word_index=index,
                second_part=_parse_evolve(raw, second[len("EVOLVE:") :]),
            )
        raise OracleParseFailure("Unknown SPLIT second-part action", raw)

    raise OracleParseFailure("Unrecognized classification response", raw)


def parse_fit_or_new(raw: str) -> Fit | New:
    answer = raw.strip().upper()
    if answer == "FIT":
        return Fit()
    if answer == "NEW":
        return New()
    raise OracleParseFailure("Expected FIT or NEW", raw)


def parse_yes_no(raw: str) -> bool:
    answer = raw.strip().upper().rstrip(".")
    if answer == "YES":
        return True
    if answer == "NO":
        return False
    raise OracleParseFailure("Expected YES or NO", raw)


def parse_evolve_choice(raw: str) -> EvolveChoice:
    answer = raw.strip().upper()
    try:
        return EvolveChoice(answer)
    except ValueError:
        raise OracleParseFailure("Expected EVOLVE or SUBHEADER", raw) from None


def parse_title(raw: str) -> str:
    title = clean_title(raw)
    if not title:
        raise OracleParseFailure("Empty title", raw)
    return title
