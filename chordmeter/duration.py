"""Durations and note events: the minimal rhythmic values the beam engine reads."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Final, Union

QuarterLength = Union[Fraction, float, int]

#: Nominal duration types from longest to shortest, with quarter lengths
DURATION_TYPES: Final[list[tuple[str, Fraction]]] = [
    ("breve", Fraction(8)),
    ("whole", Fraction(4)),
    ("half", Fraction(2)),
    ("quarter", Fraction(1)),
    ("eighth", Fraction(1, 2)),
    ("16th", Fraction(1, 4)),
    ("32nd", Fraction(1, 8)),
    ("64th", Fraction(1, 16)),
    ("128th", Fraction(1, 32)),
    ("256th", Fraction(1, 64)),
]

#: Types that carry beams, in order of beam count (eighth = 1 beam)
BEAMABLE_DURATION_TYPES: Final[list[str]] = ["eighth", "16th", "32nd", "64th", "128th", "256th"]

# Ratios that map a dotted or tuplet quarter length back to its written type:
# plain, single dot, double dot, triplet or sextuplet, quintuplet, septuplet
_WRITTEN_RATIOS: Final[list[Fraction]] = [
    Fraction(1),
    Fraction(2, 3),
    Fraction(4, 7),
    Fraction(3, 2),
    Fraction(5, 4),
    Fraction(7, 4),
]

_MAX_DENOMINATOR = 65535


def op_frac(value: QuarterLength) -> Fraction:
    """
    Convert a quarter length or offset to an exact Fraction.

    Floats are snapped to the nearest fraction with a small denominator so
    that 1/3 written as 0.333... compares equal to Fraction(1, 3).
    """
    if isinstance(value, Fraction):
        return value
    if isinstance(value, int):
        return Fraction(value)
    return Fraction(value).limit_denominator(_MAX_DENOMINATOR)


def quarter_length_to_type(quarter_length: QuarterLength) -> str:
    """
    Return the written duration type for a quarter length.

    Dotted values and common tuplets resolve to the type they are written
    with (0.75 -> 'eighth', 1/3 -> 'eighth'); anything else falls back to the
    longest type not exceeding it.
    """
    ql = op_frac(quarter_length)
    if ql <= 0:
        return "zero"
    lengths = {length: name for name, length in DURATION_TYPES}
    for ratio in _WRITTEN_RATIOS:
        written = ql * ratio
        if written in lengths:
            return lengths[written]
    for name, length in DURATION_TYPES:
        if length <= ql:
            return name
    return DURATION_TYPES[-1][0]


def beam_count(duration_type: str) -> int:
    """Number of beams a duration type carries (0 for quarter and longer)."""
    if duration_type not in BEAMABLE_DURATION_TYPES:
        return 0
    return BEAMABLE_DURATION_TYPES.index(duration_type) + 1


@dataclass(frozen=True)
class Duration:
    """A length in quarter notes, with its written type derived on demand."""

    quarter_length: Fraction

    def __post_init__(self) -> None:
        object.__setattr__(self, "quarter_length", op_frac(self.quarter_length))

    @property
    def quarterLength(self) -> Fraction:  # music21 spelling
        return self.quarter_length

    @property
    def type(self) -> str:
        return quarter_length_to_type(self.quarter_length)

    @property
    def beam_count(self) -> int:
        return beam_count(self.type)


@dataclass(frozen=True)
class NoteEvent:
    """A note or rest placed at an offset (in quarter notes) within a measure."""

    offset: Fraction
    duration: Duration
    is_rest: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "offset", op_frac(self.offset))
        if not isinstance(self.duration, Duration):
            object.__setattr__(self, "duration", Duration(self.duration))


def events_from_durations(
    quarter_lengths: list[QuarterLength],
    rests: set[int] | None = None,
    start_offset: QuarterLength = 0,
) -> list[NoteEvent]:
    """
    Lay durations end to end starting at *start_offset*.

    Args:
        quarter_lengths: Durations in quarter notes.
        rests:           Indices of events that are rests.
        start_offset:    Offset of the first event.
    """
    rests = rests or set()
    offset = op_frac(start_offset)
    events: list[NoteEvent] = []
    for index, ql in enumerate(quarter_lengths):
        duration = Duration(op_frac(ql))
        events.append(NoteEvent(offset=offset, duration=duration, is_rest=index in rests))
        offset += duration.quarter_length
    return events


# ------------------------------------------------------------------
# Accessors for duck-typed events (NoteEvent, music21 notes, mappings)
# ------------------------------------------------------------------

def _read(obj: Any, *names: str) -> Any:
    for name in names:
        if isinstance(obj, Mapping):
            if name in obj:
                return obj[name]
        elif hasattr(obj, name):
            return getattr(obj, name)
    return None


def event_offset(event: Any) -> Fraction:
    offset = _read(event, "offset")
    if offset is None:
        raise ValueError(f"Event {event!r} has no offset.")
    return op_frac(offset)


def event_quarter_length(event: Any) -> Fraction:
    duration = _read(event, "duration")
    if duration is None:
        raise ValueError(f"Event {event!r} has no duration.")
    if isinstance(duration, (int, float, Fraction)):
        return op_frac(duration)
    ql = _read(duration, "quarterLength", "quarter_length")
    if ql is None:
        raise ValueError(f"Duration of event {event!r} has no quarter length.")
    return op_frac(ql)


def event_type(event: Any) -> str:
    """Written duration type of an event, preferring a type it declares itself."""
    duration = _read(event, "duration")
    declared = None
    if duration is not None and not isinstance(duration, (int, float, Fraction)):
        declared = _read(duration, "type")
    if isinstance(declared, str) and declared in dict(DURATION_TYPES):
        return declared
    return quarter_length_to_type(event_quarter_length(event))


def event_is_rest(event: Any) -> bool:
    return bool(_read(event, "isRest", "is_rest"))
