"""Classification decisions returned by the topic oracle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class EvolveChoice(StrEnum):
    """Answer to "evolve the header or open a sub-header?"."""

    EVOLVE = "EVOLVE"
    SUBHEADER = "SUBHEADER"


@dataclass(frozen=True)
class Fit:
    """The segment belongs under the current header unchanged."""


@dataclass(frozen=True)
class New:
    """The segment starts a different topic."""


@dataclass(frozen=True)
class Evolve:
    """The segment belongs under the current header, retitled to ``new_title``."""

    new_title: str


@dataclass(frozen=True)
class Split:
    """A topic boundary at ``split_word_index`` strictly inside the segment."""

    split_word_index: int
    second_part: New | Evolve


Decision = Fit | Evolve | New | Split
