"""
Beams: per-event beam state at each subdivision depth.

Beam number 1 is the eighth-note beam, 2 the sixteenth beam, and so on. An
event carries a :class:`Beams` object holding one :class:`Beam` per number
its written duration allows, or None when it is not beamed at all.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Final, Optional

from chordmeter.duration import (
    BEAMABLE_DURATION_TYPES,
    beam_count,
    event_is_rest,
    event_type,
)

BEAM_TYPES: Final[set[str]] = {"start", "continue", "stop", "partial-left", "partial-right"}
FULL_BEAM_TYPES: Final[set[str]] = {"start", "continue", "stop"}

BeamsList = list[Optional["Beams"]]


@dataclass
class Beam:
    """One beam line; *type* stays None until the engine assigns it."""

    number: int
    type: str | None = None


@dataclass(frozen=True)
class BeamAnomaly:
    """A beam the engine could not classify; that depth is left unassigned."""

    index: int
    beam_number: int
    offset: Fraction
    message: str


class Beams:
    """The beams attached to a single event, ordered by number."""

    def __init__(self) -> None:
        self.beams_list: list[Beam] = []

    def fill(self, level: int | str) -> Beams:
        """
        Create one untyped beam per number up to *level* (an int, or a
        duration type such as '16th').
        """
        count = beam_count(level) if isinstance(level, str) else level
        self.beams_list = [Beam(number=n) for n in range(1, count + 1)]
        return self

    def get_numbers(self) -> list[int]:
        return [beam.number for beam in self.beams_list]

    def get_by_number(self, number: int) -> Beam:
        for beam in self.beams_list:
            if beam.number == number:
                return beam
        raise IndexError(f"Beam number {number} is not present.")

    def get_type_by_number(self, number: int) -> str | None:
        return self.get_by_number(number).type

    def set_by_number(self, number: int, beam_type: str) -> None:
        if beam_type not in BEAM_TYPES:
            raise ValueError(f"Invalid beam type '{beam_type}'.")
        self.get_by_number(number).type = beam_type

    def get_types(self) -> list[str | None]:
        return [beam.type for beam in self.beams_list]

    def as_dict(self) -> dict[int, str]:
        """Assigned beams as ``{number: type}``; unassigned numbers are omitted."""
        return {beam.number: beam.type for beam in self.beams_list if beam.type is not None}

    def __len__(self) -> int:
        return len(self.beams_list)

    def __repr__(self) -> str:
        inner = ", ".join(f"{b.number}/{b.type}" for b in self.beams_list)
        return f"<Beams {inner}>"

    # ------------------------------------------------------------------
    # Whole-sequence passes
    # ------------------------------------------------------------------

    @staticmethod
    def naive_beams(events: Sequence[Any]) -> BeamsList:
        """Give every beamable, non-rest event untyped beams for its duration."""
        beams_list: BeamsList = []
        for event in events:
            duration_type = event_type(event)
            if event_is_rest(event) or duration_type not in BEAMABLE_DURATION_TYPES:
                beams_list.append(None)
            else:
                beams_list.append(Beams().fill(duration_type))
        return beams_list

    @staticmethod
    def remove_sandwiched_unbeamables(beams_list: BeamsList) -> BeamsList:
        """Drop beams from an event whose neighbours on both sides are unbeamed."""
        previous = None
        for i in range(len(beams_list)):
            following = beams_list[i + 1] if i < len(beams_list) - 1 else None
            if previous is None and following is None:
                beams_list[i] = None
            previous = beams_list[i]
        return beams_list

    @staticmethod
    def sanitize_partial_beams(beams_list: BeamsList) -> BeamsList:
        """Drop beams from events left with partial beams and no full beam."""
        for i, beams in enumerate(beams_list):
            if beams is None:
                continue
            if not FULL_BEAM_TYPES.intersection(t for t in beams.get_types() if t is not None):
                beams_list[i] = None
        return beams_list

    @staticmethod
    def merge_connecting_partial_beams(beams_list: BeamsList) -> BeamsList:
        """Join partial beams that point at a neighbour able to take them."""
        for i in range(len(beams_list) - 1):
            this_beams = beams_list[i]
            next_beams = beams_list[i + 1]
            if this_beams is None or next_beams is None:
                continue
            next_numbers = next_beams.get_numbers()
            for this_beam in this_beams.beams_list:
                if this_beam.number not in next_numbers:
                    continue
                next_beam = next_beams.get_by_number(this_beam.number)
                if this_beam.type == "partial-right":
                    if next_beam.type == "partial-left":
                        this_beam.type = "start"
                        next_beam.type = "stop"
                    elif next_beam.type in ("stop", "continue"):
                        this_beam.type = "start"
                elif this_beam.type in ("start", "continue") and next_beam.type == "partial-left":
                    next_beam.type = "stop"
        return beams_list


def beam_labels(beams_list: Iterable[Beams | None]) -> list[dict[int, str] | None]:
    """Plain-data view of a beams list: ``{number: type}`` per event, or None."""
    return [beams.as_dict() if beams is not None else None for beams in beams_list]
