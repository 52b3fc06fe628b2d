"""Reads text appended to the transcript file since the last read."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class TranscriptTail:
    """Tracks a byte offset into an append-only transcript file."""

    def __init__(self, path: str | os.PathLike[str], position: int = 0) -> None:
        self.path = Path(path)
        self.position = position

    def seek_to_end(self) -> None:
        self.position = self.path.stat().st_size if self.path.exists() else 0

    def read_new(self) -> str:
        """Return the text written since the previous call (may be empty)."""
        if not self.path.exists():
            return ""
        size = self.path.stat().st_size
        if size < self.position:
            logger.warning(
                "Transcript %s shrank from %d to %d bytes; resetting offset",
                self.path,
                self.position,
                size,
            )
            self.position = size
            return ""
        if size == self.position:
            return ""

        with self.path.open("rb") as fh:
            fh.seek(self.position)
            data = fh.read(size - self.position)
        self.position = size
        return data.decode("utf-8", errors="replace")
