"""
Chord: pitch-class set classification and tertian chord queries.

A Chord holds an ordered list of :class:`~chordmeter.pitch.Pitch` values.
Set-class data (Forte class, interval vector, common name, Z relation) comes
from the shared chord tables; root, bass, inversion and triad/seventh
qualities are computed from the spelled pitches themselves.

Algorithm overview
------------------
1. **Reduction** - the pitches collapse to their distinct pitch classes.

2. **Lookup** - the normal and prime forms of that set locate a
   ``(cardinality, ordinal, inversion)`` address in the chord tables. The
   address is cached and recomputed only after the pitches change.

3. **Root finding** - every pitch (one per diatonic step) is tried as a
   root; the candidate with the longest unbroken stack of thirds above it
   wins, ties going to the lowest candidate.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Final

from chordmeter.chord_tables import (
    ChordTableAddress,
    ChordTableEntry,
    PrimeForm,
    get_chord_tables,
    normal_form,
    prime_form,
)
from chordmeter.exceptions import ChordMeterError, ChordTablesError
from chordmeter.pitch import Pitch, PitchLike

logger = logging.getLogger(__name__)

# ── Interval tables ─────────────────────────────────────────────────────────

#: Generic interval and semitone size of the stacked thirds
MAJOR_THIRD: Final[tuple[int, int]] = (3, 4)
MINOR_THIRD: Final[tuple[int, int]] = (3, 3)

#: Interval stacks (bottom to top) for the named chord types
CHORD_DEFINITIONS: Final[dict[str, tuple[tuple[int, int], ...]]] = {
    "major": (MAJOR_THIRD, MINOR_THIRD),
    "minor": (MINOR_THIRD, MAJOR_THIRD),
    "diminished": (MINOR_THIRD, MINOR_THIRD),
    "augmented": (MAJOR_THIRD, MAJOR_THIRD),
    "major-seventh": (MAJOR_THIRD, MINOR_THIRD, MAJOR_THIRD),
    "dominant-seventh": (MAJOR_THIRD, MINOR_THIRD, MINOR_THIRD),
    "minor-seventh": (MINOR_THIRD, MAJOR_THIRD, MINOR_THIRD),
    "diminished-seventh": (MINOR_THIRD, MINOR_THIRD, MINOR_THIRD),
    "half-diminished-seventh": (MINOR_THIRD, MINOR_THIRD, MAJOR_THIRD),
}

#: Semitones above the root of chord steps 1, 3, 5, 7
DOMINANT_SEVENTH_INTERVALS: Final[list[int]] = [0, 4, 7, 10]
DIMINISHED_SEVENTH_INTERVALS: Final[list[int]] = [0, 3, 6, 9]

#: Chord steps tried above a candidate root, in stacking order
_THIRD_STACK: Final[tuple[int, ...]] = (3, 5, 7, 9, 11, 13)

#: Generic (mod 7) distance from root to bass -> inversion number
_INVERSIONS: Final[dict[int, int]] = {0: 0, 2: 1, 4: 2, 6: 3, 1: 4, 3: 5, 5: 6}


@dataclass(frozen=True)
class ClassificationResult:
    """
    Set-class description of a collection of pitches.

    Attributes:
        pitch_classes:      Distinct pitch classes, ascending.
        forte_class:        Tn class label, e.g. '3-11B'; None if unclassified.
        forte_class_tni:    TnI class label, e.g. '3-11'; None if unclassified.
        common_name:        Traditional name, e.g. 'major triad'.
        interval_vector:    Counts of interval classes 1-6.
        z_relation_partner: TnI label of the Z-related class, or None.
        prime_form:         Forte prime form of the set.
        address:            Chord table address, None if unclassified.
    """

    pitch_classes: tuple[int, ...]
    forte_class: str | None
    forte_class_tni: str | None
    common_name: str | None
    interval_vector: tuple[int, ...] | None
    z_relation_partner: str | None = None
    prime_form: PrimeForm | None = None
    address: ChordTableAddress | None = None

    @property
    def is_classified(self) -> bool:
        return self.address is not None

    @classmethod
    def unclassified(cls, pitch_classes: Iterable[int]) -> ClassificationResult:
        return cls(
            pitch_classes=tuple(sorted(set(pitch_classes))),
            forte_class=None,
            forte_class_tni=None,
            common_name=None,
            interval_vector=None,
        )

    @classmethod
    def from_entry(
        cls,
        pitch_classes: Iterable[int],
        entry: ChordTableEntry,
        address: ChordTableAddress,
    ) -> ClassificationResult:
        partner = get_chord_tables().z_partner(entry)
        return cls(
            pitch_classes=tuple(sorted(set(pitch_classes))),
            forte_class=entry.forte_class,
            forte_class_tni=entry.forte_class_tni,
            common_name=entry.common_name,
            interval_vector=entry.interval_vector,
            z_relation_partner=partner.forte_class_tni if partner is not None else None,
            prime_form=entry.prime_form,
            address=address,
        )


def classify(pitches: Iterable[PitchLike]) -> ClassificationResult:
    """
    Classify a collection of pitches against the chord tables.

    A set with no table entry yields an unclassified result (and a logged
    warning) instead of an exception, so one odd chord does not stop the
    analysis of a whole passage.
    """
    pitch_classes = [Pitch.coerce(p).pitch_class for p in pitches]
    tables = get_chord_tables()
    try:
        address = tables.seek_address(pitch_classes)
        entry = tables.entry(address)
    except ChordTablesError as exc:
        logger.warning("Leaving pitch classes %s unclassified: %s", sorted(set(pitch_classes)), exc)
        return ClassificationResult.unclassified(pitch_classes)
    return ClassificationResult.from_entry(pitch_classes, entry, address)


class Chord:
    """
    An ordered collection of pitches with set-class and tertian analysis.

    Pitches may be given as :class:`Pitch` objects, names (``"C#4"``) or
    integers (0-11 pitch classes, larger values MIDI numbers); a single string
    is split on whitespace.

    Usage:

        chord = Chord(["C4", "E4", "G4"])
        chord.is_major_triad()   # True
        chord.forte_class        # '3-11B'
    """

    def __init__(self, pitches: Iterable[PitchLike] | str | None = None) -> None:
        self._pitches: list[Pitch] = []
        self._root_override: Pitch | None = None
        self._bass_override: Pitch | None = None
        self._chord_tables_address: ChordTableAddress | None = None
        self._chord_tables_address_needs_updating = True
        self._cache: dict[str, Any] = {}
        if pitches is not None:
            self.pitches = _coerce_pitches(pitches)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_definition(cls, root: PitchLike, chord_type: str) -> Chord:
        """
        Build a root-position chord by stacking the thirds of *chord_type*
        (one of :data:`CHORD_DEFINITIONS`) above *root*.

        Raises:
            ValueError: If the chord type is unknown.
        """
        try:
            stack = CHORD_DEFINITIONS[chord_type]
        except KeyError:
            supported = ", ".join(sorted(CHORD_DEFINITIONS))
            raise ValueError(f"Unknown chord type '{chord_type}'. Use one of: {supported}.") from None
        current = Pitch.coerce(root)
        pitches = [current]
        for generic, semitones in stack:
            current = current.transpose_by_step(generic, semitones)
            pitches.append(current)
        return cls(pitches)

    # ------------------------------------------------------------------
    # Pitch collection
    # ------------------------------------------------------------------

    @property
    def pitches(self) -> tuple[Pitch, ...]:
        return tuple(self._pitches)

    @pitches.setter
    def pitches(self, new_pitches: Iterable[PitchLike]) -> None:
        self._pitches = [Pitch.coerce(p) for p in new_pitches]
        self._invalidate()

    def _invalidate(self) -> None:
        self._chord_tables_address_needs_updating = True
        self._cache.clear()

    def add(self, pitches: Iterable[PitchLike] | PitchLike, run_sort: bool = True) -> Chord:
        """Add one or more pitches, sorting by pitch space unless *run_sort* is False."""
        if isinstance(pitches, (Pitch, str, int)):
            new_pitches = _coerce_pitches(pitches)
        else:
            new_pitches = [Pitch.coerce(p) for p in pitches]
        self._pitches.extend(new_pitches)
        if run_sort:
            self._pitches.sort(key=lambda p: p.ps)
        self._invalidate()
        return self

    def sort_pitches(self) -> None:
        """Sort pitches from lowest to highest (stable for unisons)."""
        self._pitches.sort(key=lambda p: p.ps)
        self._invalidate()

    def remove_duplicate_pitches(self) -> Chord:
        """Drop repeated pitches (same name and octave), keeping the first of each."""
        seen: set[str] = set()
        remaining: list[Pitch] = []
        for pitch in self._pitches:
            if pitch.name_with_octave in seen:
                continue
            seen.add(pitch.name_with_octave)
            remaining.append(pitch)
        self.pitches = remaining
        return self

    def __len__(self) -> int:
        return len(self._pitches)

    def __getitem__(self, index: int) -> Pitch:
        return self._pitches[index]

    def __iter__(self) -> Iterator[Pitch]:
        # Snapshot so mutation during iteration cannot affect the walk
        yield from tuple(self._pitches)

    def __repr__(self) -> str:
        names = " ".join(p.name_with_octave for p in self._pitches)
        return f"<Chord {names}>"

    def cardinality(self) -> int:
        """Number of distinct pitch classes."""
        return len(self.ordered_pitch_classes)

    @property
    def ordered_pitch_classes(self) -> list[int]:
        return sorted({p.pitch_class for p in self._pitches})

    # ------------------------------------------------------------------
    # Set-class properties
    # ------------------------------------------------------------------

    @property
    def chord_tables_address(self) -> ChordTableAddress:
        """
        Address of this chord in the chord tables, recomputed after any change
        to the pitches.

        Raises:
            ChordTablesError: If the pitch-class set has no table entry.
        """
        if self._chord_tables_address_needs_updating or self._chord_tables_address is None:
            self._chord_tables_address = get_chord_tables().seek_address(self.ordered_pitch_classes)
            self._chord_tables_address_needs_updating = False
        return self._chord_tables_address

    def _table_entry(self) -> ChordTableEntry:
        return get_chord_tables().entry(self.chord_tables_address)

    def classify(self) -> ClassificationResult:
        return classify(self._pitches)

    @property
    def forte_class(self) -> str:
        return self._table_entry().forte_class

    @property
    def forte_class_tni(self) -> str:
        return self._table_entry().forte_class_tni

    @property
    def forte_class_number(self) -> int:
        return self.chord_tables_address.forte_class

    @property
    def common_name(self) -> str:
        return self._table_entry().common_name

    @property
    def interval_vector(self) -> tuple[int, ...]:
        return self._table_entry().interval_vector

    @property
    def normal_form(self) -> tuple[int, ...]:
        return normal_form(self.ordered_pitch_classes)

    @property
    def prime_form(self) -> tuple[int, ...]:
        return prime_form(self.ordered_pitch_classes)

    @property
    def has_z_relation(self) -> bool:
        return self._table_entry().has_z_relation

    def are_z_relations(self, other: Chord) -> bool:
        """True if this chord and *other* belong to a Z-related pair of classes."""
        this_entry = self._table_entry()
        other_entry = other._table_entry()
        if this_entry.z_relation is None or other_entry.z_relation is None:
            return False
        this_class = (this_entry.cardinality, this_entry.ordinal)
        other_class = (other_entry.cardinality, other_entry.ordinal)
        return this_entry.z_relation == other_class and other_entry.z_relation == this_class

    def get_z_relation(self) -> Chord:
        """
        Return a chord realizing the prime form of the Z-related class.

        Raises:
            ChordTablesError: If this chord's class has no Z partner.
        """
        entry = self._table_entry()
        partner = get_chord_tables().z_partner(entry)
        if partner is None:
            raise ChordTablesError(f"{entry.forte_class} has no Z relation.")
        return Chord(list(partner.prime_form))

    # ------------------------------------------------------------------
    # Root, bass and chord steps
    # ------------------------------------------------------------------

    def root(self, new_root: PitchLike | None = None) -> Pitch:
        """
        Return the root, or install *new_root* as a sticky override.

        Raises:
            ChordMeterError: If the chord has no pitches.
        """
        if new_root is not None:
            self._root_override = Pitch.coerce(new_root)
            self._cache.pop("root", None)
        if self._root_override is not None:
            return self._root_override
        if "root" not in self._cache:
            self._cache["root"] = self._find_root()
        return self._cache["root"]

    def clear_root(self) -> None:
        self._root_override = None

    def _find_root(self) -> Pitch:
        if not self._pitches:
            raise ChordMeterError("Cannot find the root of an empty chord.")

        # One candidate per diatonic step, lowest first
        candidates: list[Pitch] = []
        steps_found: set[str] = set()
        for pitch in sorted(self._pitches, key=lambda p: p.ps):
            if pitch.step in steps_found:
                continue
            steps_found.add(pitch.step)
            candidates.append(pitch)

        if len(candidates) == 1:
            return candidates[0]

        best_root = candidates[0]
        best_stack = -1
        for candidate in candidates:
            stack = 0
            for chord_step in _THIRD_STACK[: len(candidates) - 1]:
                if self.get_chord_step(chord_step, test_root=candidate) is None:
                    break
                stack += 1
            # strictly greater keeps the lowest candidate on ties
            if stack > best_stack:
                best_root, best_stack = candidate, stack
            if stack == len(candidates) - 1:
                break
        return best_root

    def bass(self, new_bass: PitchLike | None = None) -> Pitch | None:
        """Return the lowest pitch (by pitch space), or set a bass override."""
        if new_bass is not None:
            self._bass_override = Pitch.coerce(new_bass)
        if self._bass_override is not None:
            return self._bass_override
        if not self._pitches:
            return None
        return min(self._pitches, key=lambda p: p.ps)

    def clear_bass(self) -> None:
        self._bass_override = None

    def get_chord_step(self, chord_step: int, test_root: PitchLike | None = None) -> Pitch | None:
        """
        Return the first pitch that lies *chord_step* generic steps above the
        root (3 = third, 9 = ninth, ...), or None.
        """
        root = Pitch.coerce(test_root) if test_root is not None else self.root()
        target = (chord_step - 1) % 7
        for pitch in self._pitches:
            if (pitch.diatonic_note_num - root.diatonic_note_num) % 7 == target:
                return pitch
        return None

    def semitones_from_chord_step(
        self,
        chord_step: int,
        test_root: PitchLike | None = None,
    ) -> int | None:
        """
        Semitones (mod 12) from the root up to the given chord step.

        In G-B-D-F, chord step 3 (B) is 4 semitones above G. Returns None when
        no pitch sits on that step.
        """
        root = Pitch.coerce(test_root) if test_root is not None else self.root()
        pitch = self.get_chord_step(chord_step, test_root=root)
        if pitch is None:
            return None
        return (pitch.ps - root.ps) % 12

    @property
    def third(self) -> Pitch | None:
        return self.get_chord_step(3)

    @property
    def fifth(self) -> Pitch | None:
        return self.get_chord_step(5)

    @property
    def seventh(self) -> Pitch | None:
        return self.get_chord_step(7)

    def inversion(self) -> int:
        """
        Inversion number: 0 root position, 1 third in the bass, 2 fifth,
        3 seventh, then 4-6 for ninth, eleventh and thirteenth.
        """
        bass = self.bass()
        if bass is None:
            raise ChordMeterError("Cannot find the inversion of an empty chord.")
        root = self.root()
        return _INVERSIONS[(bass.diatonic_note_num - root.diatonic_note_num) % 7]

    # ------------------------------------------------------------------
    # Chord qualities
    # ------------------------------------------------------------------

    def _is_triad_with(self, third: int, fifth: int) -> bool:
        if self.cardinality() < 3:
            return False
        return (
            self.semitones_from_chord_step(3) == third
            and self.semitones_from_chord_step(5) == fifth
        )

    def is_major_triad(self) -> bool:
        return self._is_triad_with(4, 7)

    def is_minor_triad(self) -> bool:
        return self._is_triad_with(3, 7)

    def is_diminished_triad(self) -> bool:
        return self._is_triad_with(3, 6)

    def is_augmented_triad(self) -> bool:
        return self._is_triad_with(4, 8)

    def is_seventh_of_type(self, interval_array: list[int]) -> bool:
        """
        True if chord steps 1, 3, 5 and 7 lie at the four semitone offsets
        above the root given in *interval_array*.
        """
        if self.cardinality() < 4 or len(interval_array) != 4:
            return False
        for chord_step, expected in zip((1, 3, 5, 7), interval_array):
            if self.semitones_from_chord_step(chord_step) != expected % 12:
                return False
        return True

    def is_dominant_seventh(self) -> bool:
        return self.is_seventh_of_type(DOMINANT_SEVENTH_INTERVALS)

    def is_diminished_seventh(self) -> bool:
        return self.is_seventh_of_type(DIMINISHED_SEVENTH_INTERVALS)

    def can_be_dominant_v(self) -> bool:
        return self.is_major_triad() or self.is_dominant_seventh()

    def can_be_tonic(self) -> bool:
        return self.is_major_triad() or self.is_minor_triad()


def _coerce_pitches(pitches: Iterable[PitchLike] | PitchLike) -> list[Pitch]:
    if isinstance(pitches, str):
        return [Pitch.from_name(name) for name in pitches.split()]
    if isinstance(pitches, (Pitch, int)):
        return [Pitch.coerce(pitches)]
    return [Pitch.coerce(p) for p in pitches]
