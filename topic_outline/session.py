"""Outline session: wires transcript, segment store, organizer and persistence."""

from __future__ import annotations

import logging
import os
import threading
from functools import lru_cache
from pathlib import Path

from topic_outline.config import Settings, settings as default_settings
from topic_outline.errors import MissingReference, PersistenceFailure
from topic_outline.oracle.base import TopicOracle
from topic_outline.organizer.headers import HeaderOrganizer
from topic_outline.outline.models import Header, Outline, Segment, SubHeader
from topic_outline.outline.segments import SegmentStore
from topic_outline.outline_config import OrganizerConfig, SegmentSource
from topic_outline.persistence.metadata_store import MetadataStore
from topic_outline.persistence.schema import OutlineRecord
from topic_outline.pipeline.queue import RateLimiter, SerialWorkQueue
from topic_outline.summary.meeting_summary import MeetingSummary, summary_path_for
from topic_outline.transcript.tail import TranscriptTail
from topic_outline.transcript.words import WordRangeIndex, tokenize

logger = logging.getLogger(__name__)


class OutlineSession:
    """One transcript file and its live outline.

    Live segments are queued as they arrive and classified one at a time;
    back-filled segments are replayed through the same queue, throttled by a
    rate limiter. Every mutation of the outline (ingesting text, processing
    one segment) runs under the session lock, so each saved snapshot is a
    complete state.
    """

    def __init__(
        self,
        transcript_path: str | os.PathLike[str],
        oracle: TopicOracle,
        settings: Settings | None = None,
        limiter: RateLimiter | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.transcript_path = Path(transcript_path)
        self.config = OrganizerConfig.from_settings(self.settings)

        self.metadata = MetadataStore.for_transcript(self.transcript_path)
        self.words = WordRangeIndex()
        self.queue = SerialWorkQueue()
        self.limiter = limiter or RateLimiter(self.settings.backlog_pause_seconds)
        self.tail = TranscriptTail(self.transcript_path)
        self.segments = SegmentStore(self.metadata, on_live_segment=self._enqueue)
        self.organizer = HeaderOrganizer(
            self.metadata,
            self.segments,
            self.words,
            oracle,
            self.config,
            summary_fallback_chars=self.settings.summary_fallback_chars,
        )
        self.summary = MeetingSummary(summary_path_for(self.transcript_path), self.organizer.oracle)
        self._lock = threading.RLock()

    @property
    def outline(self) -> Outline:
        return self.metadata.outline

    def start(self) -> None:
        """Load metadata, index the transcript and classify outstanding segments.

        Words not covered by any segment (a fresh transcript, or content
        written while the process was down) are back-filled as fixed-size
        ``initial-load`` windows before replay.
        """
        with self._lock:
            self.metadata.load()
            try:
                self.summary.load()
            except PersistenceFailure:
                logger.exception("Could not load meeting summary")

            text = ""
            if self.transcript_path.exists():
                text = self.transcript_path.read_text(encoding="utf-8", errors="replace")
            self.words.reset(text)
            self.tail.seek_to_end()
            logger.info("Initialized word count: %d words", self.words.word_count)

            covered = self.outline.covered_word_count()
            if covered < self.words.word_count:
                self.segments.segment_range(
                    covered,
                    self.words.word_count - 1,
                    window=self.config.backfill_window_words,
                )
            self.classify_backlog()

    def classify_backlog(self) -> int:
        """Replay every unassigned segment, in creation order."""
        pending = self.segments.unassigned()
        if not pending:
            return 0
        logger.info("Processing %d unassigned segments", len(pending))
        for segment in pending:
            self.queue.submit(segment.id)
        return self.queue.drain(self._process, self.limiter)

    def on_new_content(
        self,
        raw_text: str,
        source: SegmentSource | str = SegmentSource.LIVE_TRANSCRIPTION,
    ) -> Segment | None:
        """Append text to the transcript file, then segment and classify it.

        Anything already written to the file but not yet polled is ingested
        first, so word indices keep matching the file.
        """
        if not tokenize(raw_text):
            return None
        with self._lock:
            self._ingest(self.tail.read_new(), SegmentSource.LIVE_TRANSCRIPTION)
            self._append_to_transcript(raw_text)
            segment = self._ingest(raw_text, source)
        self.queue.drain(self._process)
        return segment

    def poll(self) -> Segment | None:
        """Ingest anything appended to the transcript file since the last poll."""
        with self._lock:
            segment = self._ingest(self.tail.read_new(), SegmentSource.LIVE_TRANSCRIPTION)
        if segment is not None:
            self.queue.drain(self._process)
        return segment

    def watch(self, stop: threading.Event) -> None:
        """Poll the transcript until ``stop`` is set."""
        logger.info("Monitoring transcript file: %s", self.transcript_path)
        while not stop.is_set():
            try:
                self.poll()
            except OSError:
                logger.exception("Error reading new transcript content")
            stop.wait(self.settings.poll_interval_seconds)

    def refresh_summary(self) -> str:
        """Create or update the meeting summary from the whole transcript."""
        with self._lock:
            transcript = self.words.text(0, self.words.word_count - 1)
        return self.summary.refresh(transcript)

    def snapshot(self) -> OutlineRecord:
        return self.metadata.snapshot()

    def segment_text(self, segment_id: str) -> str:
        with self._lock:
            segment = self.outline.get_segment(segment_id)
            return self.words.text(segment.start_word_index, segment.end_word_index)

    def segment_detail(
        self, segment_id: str
    ) -> tuple[Segment, str, Header | None, SubHeader | None]:
        """A segment, its text and its owning header/sub-header."""
        with self._lock:
            segment = self.outline.get_segment(segment_id)
            text = self.words.text(segment.start_word_index, segment.end_word_index)
            owner = self.outline.owner_of(segment_id)
            header, sub = owner if owner is not None else (None, None)
            return segment, text, header, sub

    def _ingest(self, raw_text: str, source: SegmentSource | str) -> Segment | None:
        word_range = self.words.append(raw_text)
        if word_range is None:
            return None
        return self.segments.add_segment(*word_range, source)

    def _append_to_transcript(self, raw_text: str) -> None:
        try:
            with self.transcript_path.open("ab") as fh:
                if fh.tell():
                    fh.write(b"\n")
                fh.write(raw_text.encode("utf-8"))
                self.tail.position = fh.tell()
        except OSError as exc:
            raise PersistenceFailure(
                f"Could not append to transcript {self.transcript_path}: {exc}"
            ) from exc

    def _enqueue(self, segment: Segment) -> None:
        self.queue.submit(segment.id)

    def _process(self, segment_id: str) -> None:
        with self._lock:
            try:
                segment = self.outline.get_segment(segment_id)
            except MissingReference:
                # Replaced by a split before its turn came.
                logger.warning("Queued segment %s no longer exists; skipping", segment_id)
                return
            self.organizer.process(segment)


_session_lock = threading.Lock()


@lru_cache(maxsize=1)
def _build_session() -> OutlineSession:
    from topic_outline.oracle.claude import ClaudeTopicOracle

    session = OutlineSession(
        default_settings.transcript_path,
        ClaudeTopicOracle(default_settings),
        default_settings,
    )
    session.start()
    return session


def get_session() -> OutlineSession:
    """Return the process-wide session for the configured transcript.

    Concurrent first callers wait for the one session being started.
    """
    with _session_lock:
        return _build_session()
