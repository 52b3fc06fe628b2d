"""Exception hierarchy for the topic outline."""

from __future__ import annotations


class OutlineError(Exception):
    """Base class for all outline errors."""


class OracleError(OutlineError):
    """The topic oracle could not produce a usable answer."""


class OracleUnavailable(OracleError):
    """Network failure, timeout, rate limit or overload after retries."""


class OracleParseFailure(OracleError):
    """The oracle answered with text that does not match the wire format."""

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class InvalidSegmentRange(OutlineError, ValueError):
    """A segment was requested with ``start > end`` or a negative start."""


class InvalidSplitPoint(OutlineError, ValueError):
    """A split index outside ``(segment.start, segment.end]``."""


class PersistenceFailure(OutlineError):
    """Writing the metadata snapshot or another session file failed."""


class MissingReference(OutlineError, LookupError):
    """A header, sub-header or segment id could not be resolved."""


class HeaderLocked(OutlineError):
    """Attempt to change the title or summary of a locked header."""
