"""Pitch: a spelled pitch with pitch-space and pitch-class arithmetic."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Union

from chordmeter.exceptions import PitchError

# Diatonic step letters in ascending order (index 0 = C)
STEP_NAMES: Final[str] = "CDEFGAB"

#: Semitones above C for each natural step
STEP_SEMITONES: Final[dict[str, int]] = {
    "C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11,
}

#: Default spelling for each pitch class, music21 style ("-" is a flat)
PITCH_CLASS_SPELLINGS: Final[list[str]] = [
    "C", "C#", "D", "E-", "E", "F", "F#", "G", "G#", "A", "B-", "B",
]

SEMITONES_PER_OCTAVE = 12
DEFAULT_OCTAVE = 4  # octave assumed when none is given (middle C octave)

_PITCH_RE = re.compile(r"^([A-Ga-g])(#+|-+|b+)?(\d+)?$")

PitchLike = Union["Pitch", str, int]


@dataclass(frozen=True)
class Pitch:
    """
    An immutable spelled pitch.

    Attributes:
        step:   Diatonic letter, "C" through "B".
        alter:  Chromatic alteration in semitones (+1 sharp, -1 flat, ...).
        octave: Scientific octave number, or None when left implicit
                (calculations then use octave 4).
    """

    step: str
    alter: int = 0
    octave: int | None = None

    def __post_init__(self) -> None:
        if self.step not in STEP_SEMITONES:
            raise PitchError(f"Invalid pitch step '{self.step}'.")

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_name(cls, name: str) -> Pitch:
        """
        Parse a pitch name such as ``"C4"``, ``"F#3"``, ``"B-2"`` or ``"Eb"``.

        ``#`` raises and ``-`` lowers by a semitone each; ``b`` is accepted as a
        flat when it follows the step letter. A missing octave stays implicit.

        Raises:
            PitchError: If the name cannot be parsed.
        """
        match = _PITCH_RE.match(name.strip())
        if not match:
            raise PitchError(f"Cannot parse pitch name '{name}'.")
        letter, accidental, octave = match.groups()
        alter = 0
        if accidental:
            alter = len(accidental) if accidental[0] == "#" else -len(accidental)
        return cls(
            step=letter.upper(),
            alter=alter,
            octave=int(octave) if octave is not None else None,
        )

    @classmethod
    def from_number(cls, number: int) -> Pitch:
        """
        Build a pitch from an integer.

        0-11 is read as a pitch class with an implicit octave; larger values
        are MIDI note numbers (60 = C4). Spelling uses sharps except for
        E-flat and B-flat.
        """
        if number < 0:
            raise PitchError(f"Pitch number must not be negative, got {number}.")
        name = PITCH_CLASS_SPELLINGS[number % SEMITONES_PER_OCTAVE]
        octave = None if number < SEMITONES_PER_OCTAVE else number // SEMITONES_PER_OCTAVE - 1
        pitch = cls.from_name(name)
        return cls(step=pitch.step, alter=pitch.alter, octave=octave)

    @classmethod
    def coerce(cls, value: PitchLike) -> Pitch:
        """Return *value* as a Pitch, parsing strings and ints."""
        if isinstance(value, Pitch):
            return value
        if isinstance(value, bool):
            raise PitchError(f"Cannot interpret {value!r} as a pitch.")
        if isinstance(value, int):
            return cls.from_number(value)
        if isinstance(value, str):
            return cls.from_name(value)
        raise PitchError(f"Cannot interpret {value!r} as a pitch.")

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def implicit_octave(self) -> int:
        return self.octave if self.octave is not None else DEFAULT_OCTAVE

    @property
    def name(self) -> str:
        """Step plus accidental, e.g. 'F#' or 'B-'."""
        if self.alter > 0:
            return self.step + "#" * self.alter
        return self.step + "-" * -self.alter

    @property
    def name_with_octave(self) -> str:
        if self.octave is None:
            return self.name
        return f"{self.name}{self.octave}"

    @property
    def ps(self) -> int:
        """Pitch space value; identical to the MIDI number (C4 = 60)."""
        return (
            (self.implicit_octave + 1) * SEMITONES_PER_OCTAVE
            + STEP_SEMITONES[self.step]
            + self.alter
        )

    @property
    def pitch_class(self) -> int:
        """Enharmonic pitch class, 0=C ... 11=B."""
        return self.ps % SEMITONES_PER_OCTAVE

    @property
    def diatonic_note_num(self) -> int:
        """Diatonic position counting C0 as 1 (C4 = 29)."""
        return self.implicit_octave * 7 + STEP_NAMES.index(self.step) + 1

    # ------------------------------------------------------------------
    # Transformations
    # ------------------------------------------------------------------

    def transpose_by_step(self, generic: int, semitones: int) -> Pitch:
        """
        Return the pitch *generic* steps above this one (2 = second, 3 = third)
        spelled so that it lies *semitones* above.

        >>> Pitch.from_name("G4").transpose_by_step(3, 4).name_with_octave
        'B4'
        """
        index = STEP_NAMES.index(self.step) + generic - 1
        octave = self.implicit_octave + index // 7
        step = STEP_NAMES[index % 7]
        natural_ps = (octave + 1) * SEMITONES_PER_OCTAVE + STEP_SEMITONES[step]
        return Pitch(step=step, alter=self.ps + semitones - natural_ps, octave=octave)

    def __str__(self) -> str:
        return self.name_with_octave

    def __repr__(self) -> str:
        return f"<Pitch {self.name_with_octave}>"
