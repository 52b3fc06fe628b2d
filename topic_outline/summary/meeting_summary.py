"""Rolling whole-meeting summary kept in a Markdown file beside the transcript."""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from topic_outline.errors import PersistenceFailure
from topic_outline.oracle.base import TopicOracle

logger = logging.getLogger(__name__)


def summary_path_for(transcript_path: str | os.PathLike[str]) -> Path:
    """``meeting.txt`` -> ``meeting_summary.md`` in the same directory."""
    path = Path(transcript_path)
    return path.with_name(f"{path.stem}_summary.md")


class MeetingSummary:
    """Creates and updates the meeting summary on demand.

    The first refresh writes a summary of the whole transcript; later ones
    ask the oracle to update the existing text. Refreshes run one at a time.
    """

    def __init__(self, path: str | os.PathLike[str], oracle: TopicOracle) -> None:
        self.path = Path(path)
        self.oracle = oracle
        self.text = ""
        self._refresh_lock = threading.Lock()

    def load(self) -> str:
        """Read the summary file, creating a blank one when missing."""
        try:
            if self.path.exists():
                self.text = self.path.read_text(encoding="utf-8", errors="replace").strip()
                logger.info("Loaded existing summary from %s", self.path)
            else:
                self.path.write_text("", encoding="utf-8")
                logger.info("Created blank summary file %s", self.path)
        except OSError as exc:
            raise PersistenceFailure(f"Could not access summary {self.path}: {exc}") from exc
        return self.text

    def refresh(self, transcript: str) -> str:
        """Summarize ``transcript`` (the full text so far) and save the result."""
        if not transcript.strip():
            logger.info("No transcript content to summarize")
            return self.text

        with self._refresh_lock:
            summary = self.oracle.summarize_meeting(transcript, self.text)
            try:
                self.path.write_text(summary, encoding="utf-8")
            except OSError as exc:
                raise PersistenceFailure(f"Could not write summary {self.path}: {exc}") from exc
            self.text = summary
            logger.info("Summary saved to %s (%d chars)", self.path, len(summary))
        return self.text
