"""Word-offset view over the flat transcript."""

from __future__ import annotations


def tokenize(text: str) -> list[str]:
    """Split on any whitespace, dropping empty tokens."""
    return text.split()


class WordRangeIndex:
    """Maps the transcript to word offsets and extracts inclusive word ranges.

    The index only ever grows: the transcript is append-only, so new text is
    tokenized and appended after the last known word.
    """

    def __init__(self, text: str = "") -> None:
        self._words: list[str] = tokenize(text)

    def reset(self, text: str) -> None:
        """Re-index the whole transcript, e.g. after a restart."""
        self._words = tokenize(text)

    @property
    def word_count(self) -> int:
        return len(self._words)

    def text(self, start: int, end: int) -> str:
        """Return words ``start..end`` (inclusive) joined by single spaces.

        The range is clamped to the words that exist; an empty or inverted
        range yields an empty string.
        """
        start = max(0, start)
        end = min(len(self._words) - 1, end)
        if start > end:
            return ""
        return " ".join(self._words[start : end + 1])

    def append(self, raw_text: str) -> tuple[int, int] | None:
        """Append new transcript text and return the word range it occupies.

        Returns None when the text holds no words.
        """
        new_words = tokenize(raw_text)
        if not new_words:
            return None
        start = len(self._words)
        self._words.extend(new_words)
        return start, len(self._words) - 1


def expanded_range(start: int, end: int, overlap: int) -> tuple[int, int]:
    """Extend a range ``overlap`` words to the left, clamped at word 0."""
    return max(0, start - overlap), end
