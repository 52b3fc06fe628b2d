"""Durable JSON snapshot of the outline, written beside the transcript."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pydantic import ValidationError

from topic_outline.errors import PersistenceFailure
from topic_outline.outline.models import Outline, utc_now_iso
from topic_outline.persistence.schema import OutlineRecord

logger = logging.getLogger(__name__)


def metadata_path_for(transcript_path: str | os.PathLike[str]) -> Path:
    """``meeting.txt`` -> ``meeting.meta.json`` in the same directory."""
    path = Path(transcript_path)
    return path.with_name(f"{path.stem}.meta.json")


class MetadataStore:
    """Owns the in-memory :class:`Outline` and its JSON snapshot.

    ``save()`` writes synchronously and raises :class:`PersistenceFailure`;
    ``checkpoint()`` is the variant used by the organizer, which logs the
    failure and keeps the in-memory state (the next successful save catches
    up). Inside ``deferred_save()`` both only mark the store dirty, and a
    single write happens when the outermost block exits.
    """

    def __init__(self, path: str | os.PathLike[str], transcript_file: str) -> None:
        self.path = Path(path)
        self.outline = Outline(transcript_file=transcript_file)
        self._committed = OutlineRecord.from_outline(self.outline)
        self._defer_depth = 0
        self._dirty = False

    @classmethod
    def for_transcript(cls, transcript_path: str | os.PathLike[str]) -> MetadataStore:
        return cls(metadata_path_for(transcript_path), Path(transcript_path).name)

    def load(self) -> Outline:
        """Load the snapshot from disk, starting fresh when there is none.

        An unreadable or invalid file is moved aside with a ``.corrupt``
        suffix so the next save does not overwrite it.
        """
        if not self.path.exists():
            logger.info("No metadata file at %s, starting fresh", self.path)
            self.outline = Outline(transcript_file=self.outline.transcript_file)
            self._committed = OutlineRecord.from_outline(self.outline)
            return self.outline

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            record = OutlineRecord.model_validate(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError):
            corrupt = self.path.with_name(self.path.name + ".corrupt")
            logger.exception("Could not load metadata from %s; moving it to %s", self.path, corrupt)
            os.replace(self.path, corrupt)
            self.outline = Outline(transcript_file=self.outline.transcript_file)
            self._committed = OutlineRecord.from_outline(self.outline)
            return self.outline

        self.outline = record.to_outline()
        self._committed = record
        logger.info(
            "Loaded metadata with %d segments and %d headers",
            len(self.outline.segments),
            len(self.outline.headers),
        )
        return self.outline

    def save(self) -> None:
        """Write the snapshot now (or mark dirty inside ``deferred_save``)."""
        if self._defer_depth:
            self._dirty = True
            return
        self._write()

    def checkpoint(self) -> bool:
        """Save, logging instead of raising on failure. Returns True on success."""
        try:
            self.save()
        except PersistenceFailure:
            logger.exception("Metadata checkpoint failed; in-memory state kept")
            return False
        return True

    @contextmanager
    def deferred_save(self) -> Iterator[None]:
        """Group several mutations into one atomic snapshot write."""
        self._defer_depth += 1
        try:
            yield
        finally:
            self._defer_depth -= 1
        if self._defer_depth == 0 and self._dirty:
            self.checkpoint()

    def snapshot(self) -> OutlineRecord:
        """The last committed snapshot; never reflects a half-applied update."""
        return self._committed.model_copy(deep=True)

    def _write(self) -> None:
        self._dirty = False
        self.outline.last_modified = utc_now_iso()
        record = OutlineRecord.from_outline(self.outline)
        self._committed = record
        payload = json.dumps(record.to_wire(), indent=2, ensure_ascii=False)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceFailure(f"Could not write metadata to {self.path}: {exc}") from exc
        logger.debug("Metadata saved to %s", self.path)
