"""
Chord tables: the Forte catalogue of pitch-class set classes.

Every set of distinct pitch classes (0-12 members) belongs to exactly one
set class under transposition and inversion (TnI). Forte numbered these
classes ``cardinality-ordinal``; classes that are not inversionally
symmetric split into two transpositional (Tn) classes, "A" for the prime
orientation and "B" for its inversion (so a minor triad is 3-11A and a
major triad 3-11B).

Only the prime forms of cardinalities 0-6 are stored, in catalogue order.
Classes of 7 or more members carry the ordinal of their complement
(7-20 is the complement of 5-20), and interval vectors and Z relations are
derived at build time.

The table is built once per process by :func:`get_chord_tables` and is
read-only afterwards.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import lru_cache
from typing import Final, NamedTuple

import numpy as np

from chordmeter.exceptions import ChordTablesError

logger = logging.getLogger(__name__)

PITCH_CLASSES = 12

PrimeForm = tuple[int, ...]
TableKey = tuple[int, int, int]  # (cardinality, forte ordinal, inversion)

# ── Catalogue ───────────────────────────────────────────────────────────────

#: Forte prime forms, indexed by cardinality, listed in ordinal order
FORTE_PRIMES: Final[dict[int, tuple[PrimeForm, ...]]] = {
    0: ((),),
    1: ((0,),),
    2: ((0, 1), (0, 2), (0, 3), (0, 4), (0, 5), (0, 6)),
    3: (
        (0, 1, 2), (0, 1, 3), (0, 1, 4), (0, 1, 5), (0, 1, 6), (0, 2, 4),
        (0, 2, 5), (0, 2, 6), (0, 2, 7), (0, 3, 6), (0, 3, 7), (0, 4, 8),
    ),
    4: (
        (0, 1, 2, 3), (0, 1, 2, 4), (0, 1, 3, 4), (0, 1, 2, 5), (0, 1, 2, 6),
        (0, 1, 2, 7), (0, 1, 4, 5), (0, 1, 5, 6), (0, 1, 6, 7), (0, 2, 3, 5),
        (0, 1, 3, 5), (0, 2, 3, 6), (0, 1, 3, 6), (0, 2, 3, 7), (0, 1, 4, 6),
        (0, 1, 5, 7), (0, 3, 4, 7), (0, 1, 4, 7), (0, 1, 4, 8), (0, 1, 5, 8),
        (0, 2, 4, 6), (0, 2, 4, 7), (0, 2, 5, 7), (0, 2, 4, 8), (0, 2, 6, 8),
        (0, 3, 5, 8), (0, 2, 5, 8), (0, 3, 6, 9), (0, 1, 3, 7),
    ),
    5: (
        (0, 1, 2, 3, 4), (0, 1, 2, 3, 5), (0, 1, 2, 4, 5), (0, 1, 2, 3, 6),
        (0, 1, 2, 3, 7), (0, 1, 2, 5, 6), (0, 1, 2, 6, 7), (0, 2, 3, 4, 6),
        (0, 1, 2, 4, 6), (0, 1, 3, 4, 6), (0, 2, 3, 4, 7), (0, 1, 3, 5, 6),
        (0, 1, 2, 4, 8), (0, 1, 2, 5, 7), (0, 1, 2, 6, 8), (0, 1, 3, 4, 7),
        (0, 1, 3, 4, 8), (0, 1, 4, 5, 7), (0, 1, 3, 6, 7), (0, 1, 3, 7, 8),
        (0, 1, 4, 5, 8), (0, 1, 4, 7, 8), (0, 2, 3, 5, 7), (0, 1, 3, 5, 7),
        (0, 2, 3, 5, 8), (0, 2, 4, 5, 8), (0, 1, 3, 5, 8), (0, 2, 3, 6, 8),
        (0, 1, 3, 6, 8), (0, 1, 4, 6, 8), (0, 1, 3, 6, 9), (0, 1, 4, 6, 9),
        (0, 2, 4, 6, 8), (0, 2, 4, 6, 9), (0, 2, 4, 7, 9), (0, 1, 2, 4, 7),
        (0, 3, 4, 5, 8), (0, 1, 2, 5, 8),
    ),
    6: (
        (0, 1, 2, 3, 4, 5), (0, 1, 2, 3, 4, 6), (0, 1, 2, 3, 5, 6),
        (0, 1, 2, 4, 5, 6), (0, 1, 2, 3, 6, 7), (0, 1, 2, 5, 6, 7),
        (0, 1, 2, 6, 7, 8), (0, 2, 3, 4, 5, 7), (0, 1, 2, 3, 5, 7),
        (0, 1, 3, 4, 5, 7), (0, 1, 2, 4, 5, 7), (0, 1, 2, 4, 6, 7),
        (0, 1, 3, 4, 6, 7), (0, 1, 3, 4, 5, 8), (0, 1, 2, 4, 5, 8),
        (0, 1, 4, 5, 6, 8), (0, 1, 2, 4, 7, 8), (0, 1, 2, 5, 7, 8),
        (0, 1, 3, 4, 7, 8), (0, 1, 4, 5, 8, 9), (0, 2, 3, 4, 6, 8),
        (0, 1, 2, 4, 6, 8), (0, 2, 3, 5, 6, 8), (0, 1, 3, 4, 6, 8),
        (0, 1, 3, 5, 6, 8), (0, 1, 3, 5, 7, 8), (0, 1, 3, 4, 6, 9),
        (0, 1, 3, 5, 6, 9), (0, 1, 3, 6, 8, 9), (0, 1, 3, 6, 7, 9),
        (0, 1, 3, 5, 8, 9), (0, 2, 4, 5, 7, 9), (0, 2, 3, 5, 7, 9),
        (0, 1, 3, 5, 7, 9), (0, 2, 4, 6, 8, 10), (0, 1, 2, 3, 4, 7),
        (0, 1, 2, 3, 4, 8), (0, 1, 2, 3, 7, 8), (0, 2, 3, 4, 5, 8),
        (0, 1, 2, 3, 5, 8), (0, 1, 2, 3, 6, 8), (0, 1, 2, 3, 6, 9),
        (0, 1, 2, 5, 6, 8), (0, 1, 2, 5, 6, 9), (0, 2, 3, 4, 6, 9),
        (0, 1, 2, 4, 6, 9), (0, 1, 2, 4, 7, 9), (0, 1, 2, 5, 7, 9),
        (0, 1, 3, 4, 7, 9), (0, 1, 4, 6, 7, 9),
    ),
}

#: Common names by (cardinality, ordinal); a dict value names the A (1) and
#: B (-1) orientations separately.
COMMON_NAMES: Final[dict[tuple[int, int], str | dict[int, str]]] = {
    (0, 1): "empty chord",
    (1, 1): "note",
    (2, 1): "minor second",
    (2, 2): "major second",
    (2, 3): "minor third",
    (2, 4): "major third",
    (2, 5): "perfect fourth",
    (2, 6): "tritone",
    (3, 1): "chromatic trimirror",
    (3, 2): {1: "phrygian trichord", -1: "minor trichord"},
    (3, 3): "major-minor trichord",
    (3, 4): "incomplete major-seventh chord",
    (3, 5): "tritone-fourth",
    (3, 6): "whole-tone trichord",
    (3, 7): {1: "incomplete minor-seventh chord", -1: "incomplete dominant-seventh chord"},
    (3, 8): {1: "incomplete dominant-seventh chord", -1: "Italian augmented sixth chord"},
    (3, 9): "quartal trichord",
    (3, 10): "diminished triad",
    (3, 11): {1: "minor triad", -1: "major triad"},
    (3, 12): "augmented triad",
    (4, 1): "chromatic tetramirror",
    (4, 2): "major-second tetracluster",
    (4, 3): "alternating tetramirror",
    (4, 4): "minor third tetracluster",
    (4, 5): "major third tetracluster",
    (4, 6): "perfect fourth tetramirror",
    (4, 7): "Arabian tetramirror",
    (4, 8): "double-fourth tetramirror",
    (4, 9): "double tritone tetramirror",
    (4, 10): "minor tetramirror",
    (4, 11): {1: "phrygian tetrachord", -1: "major tetrachord"},
    (4, 12): "harmonic-minor tetrachord",
    (4, 15): "all-interval tetrachord",
    (4, 17): "major-minor tetramirror",
    (4, 18): "diminished-major seventh chord",
    (4, 19): {1: "minor-major seventh chord", -1: "augmented major-seventh chord"},
    (4, 20): "major-seventh chord",
    (4, 21): "whole-tone tetramirror",
    (4, 23): "quartal tetramirror",
    (4, 24): "augmented seventh chord",
    (4, 25): "French augmented sixth chord",
    (4, 26): "minor-seventh chord",
    (4, 27): {1: "half-diminished seventh chord", -1: "dominant seventh chord"},
    (4, 28): "diminished-seventh chord",
    (4, 29): "all-interval tetrachord",
    (5, 1): "chromatic pentamirror",
    (5, 23): {1: "minor pentachord", -1: "major pentachord"},
    (5, 27): {1: "major-ninth chord", -1: "minor-ninth chord"},
    (5, 33): "whole-tone pentamirror",
    (5, 34): "dominant-ninth chord",
    (5, 35): "pentatonic scale",
    (6, 1): "chromatic hexamirror",
    (6, 20): "hexatonic scale",
    (6, 30): {-1: "Petrushka chord"},
    (6, 32): "diatonic hexachord",
    (6, 34): {1: "mystic chord"},
    (6, 35): "whole-tone scale",
    (7, 1): "chromatic heptamirror",
    (7, 22): "double harmonic scale",
    (7, 32): {1: "harmonic minor scale", -1: "harmonic major scale"},
    (7, 34): "ascending melodic minor scale",
    (7, 35): "diatonic scale",
    (8, 1): "chromatic octamirror",
    (8, 28): "octatonic scale",
    (9, 1): "chromatic nonamirror",
    (9, 12): "nonatonic scale",
    (10, 1): "chromatic decamirror",
    (11, 1): "chromatic undecamirror",
    (12, 1): "aggregate",
}

_ORIENTATION_LETTERS: Final[dict[int, str]] = {0: "", 1: "A", -1: "B"}


# ── Set-theory primitives ───────────────────────────────────────────────────

def _pitch_class_set(pitch_classes: Iterable[int]) -> list[int]:
    return sorted({pc % PITCH_CLASSES for pc in pitch_classes})


def _zeroed(form: PrimeForm) -> PrimeForm:
    if not form:
        return ()
    return tuple((pc - form[0]) % PITCH_CLASSES for pc in form)


def normal_form(pitch_classes: Iterable[int]) -> PrimeForm:
    """
    Return the normal form (most compact rotation) of a pitch-class set.

    Rotations are ranked by total span, then by how tightly they pack to the
    left (smallest interval from the first member to the second, then to the
    third, ...), then by the lowest starting pitch class.

    >>> normal_form([7, 0, 4])
    (0, 4, 7)
    """
    pcs = _pitch_class_set(pitch_classes)
    if not pcs:
        return ()
    rotations = [pcs[i:] + [pc + PITCH_CLASSES for pc in pcs[:i]] for i in range(len(pcs))]

    def rank(rotation: list[int]) -> tuple[int, PrimeForm, int]:
        zeroed = tuple(pc - rotation[0] for pc in rotation)
        return zeroed[-1], zeroed, rotation[0]

    best = min(rotations, key=rank)
    return tuple(pc % PITCH_CLASSES for pc in best)


def prime_form(pitch_classes: Iterable[int]) -> PrimeForm:
    """
    Return the Forte prime form: the more left-packed of the zeroed normal
    forms of the set and of its inversion.

    >>> prime_form([0, 4, 7])
    (0, 3, 7)
    """
    pcs = _pitch_class_set(pitch_classes)
    original = _zeroed(normal_form(pcs))
    inverted = _zeroed(normal_form(-pc for pc in pcs))
    return min(original, inverted)


def interval_vector(pitch_classes: Iterable[int]) -> tuple[int, ...]:
    """
    Count the interval classes 1-6 between every pair of distinct members.

    >>> interval_vector([0, 4, 7])
    (0, 0, 1, 1, 1, 0)
    """
    pcs = np.array(_pitch_class_set(pitch_classes), dtype=int)
    upper = np.triu_indices(len(pcs), k=1)
    differences = np.abs(pcs[:, None] - pcs[None, :])[upper]
    interval_classes = np.minimum(differences, PITCH_CLASSES - differences)
    counts = np.bincount(interval_classes, minlength=7)
    return tuple(int(count) for count in counts[1:7])


def complement(pitch_classes: Iterable[int]) -> PrimeForm:
    present = set(_pitch_class_set(pitch_classes))
    return tuple(pc for pc in range(PITCH_CLASSES) if pc not in present)


# ── Table records ───────────────────────────────────────────────────────────

class ChordTableAddress(NamedTuple):
    """
    Location of a pitch-class set in the chord tables.

    Attributes:
        cardinality: Number of distinct pitch classes.
        forte_class: Forte ordinal within the cardinality.
        inversion:   1 for the A (prime) orientation, -1 for B, 0 when the
                     class is inversionally symmetric.
        pc_original: First pitch class of the set's normal form.
    """

    cardinality: int
    forte_class: int
    inversion: int
    pc_original: int

    @property
    def key(self) -> TableKey:
        return self.cardinality, self.forte_class, self.inversion


@dataclass(frozen=True)
class ChordTableEntry:
    """One transpositional (Tn) set class."""

    cardinality: int
    ordinal: int
    inversion: int
    prime_form: PrimeForm
    interval_vector: tuple[int, ...]
    common_name: str
    z_relation: tuple[int, int] | None = None

    @property
    def key(self) -> TableKey:
        return self.cardinality, self.ordinal, self.inversion

    @property
    def forte_class_tni(self) -> str:
        return forte_label(self.cardinality, self.ordinal, 0, self.has_z_relation)

    @property
    def forte_class(self) -> str:
        """Tn class label, e.g. '3-11B' or '4-Z15A'."""
        return forte_label(self.cardinality, self.ordinal, self.inversion, self.has_z_relation)

    @property
    def has_z_relation(self) -> bool:
        return self.z_relation is not None

    @property
    def pitch_classes(self) -> PrimeForm:
        """A realization of this Tn class starting on pitch class 0."""
        if self.inversion == -1:
            return _zeroed(normal_form(-pc for pc in self.prime_form))
        return self.prime_form


def forte_label(cardinality: int, ordinal: int, inversion: int = 0, z_related: bool = False) -> str:
    """
    Format a Forte class label.

    >>> forte_label(4, 15, 1, z_related=True)
    '4-Z15A'
    """
    z_mark = "Z" if z_related else ""
    return f"{cardinality}-{z_mark}{ordinal}{_ORIENTATION_LETTERS[inversion]}"


def _common_name(cardinality: int, ordinal: int, inversion: int, forte_class: str) -> str:
    name = COMMON_NAMES.get((cardinality, ordinal))
    if isinstance(name, dict):
        name = name.get(inversion)
    return name if name is not None else f"forte class {forte_class}"


# ── Table ───────────────────────────────────────────────────────────────────

class ChordTables:
    """
    Immutable index of every Tn set class.

    Use :func:`get_chord_tables` instead of instantiating this directly, so
    the whole process shares one table.
    """

    def __init__(self) -> None:
        self._prime_index: dict[PrimeForm, tuple[int, int]] = {}
        self._entries: dict[TableKey, ChordTableEntry] = {}
        self._build()
        logger.debug("Built chord tables with %d Tn classes", len(self._entries))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _catalogue(self, cardinality: int) -> tuple[PrimeForm, ...]:
        if cardinality in FORTE_PRIMES:
            primes = FORTE_PRIMES[cardinality]
            for prime in primes:
                if prime_form(prime) != prime:
                    raise ChordTablesError(f"Catalogue entry {prime} is not a prime form.")
            return primes
        # Forte numbers larger sets after their complements
        return tuple(
            prime_form(complement(prime))
            for prime in FORTE_PRIMES[PITCH_CLASSES - cardinality]
        )

    def _build(self) -> None:
        vectors: dict[tuple[int, int], tuple[int, ...]] = {}
        symmetric: dict[tuple[int, int], bool] = {}
        by_vector: dict[tuple[int, tuple[int, ...]], list[int]] = defaultdict(list)

        for cardinality in range(PITCH_CLASSES + 1):
            for ordinal, prime in enumerate(self._catalogue(cardinality), start=1):
                if prime in self._prime_index:
                    raise ChordTablesError(f"Prime form {prime} is catalogued twice.")
                self._prime_index[prime] = (cardinality, ordinal)
                vector = interval_vector(prime)
                vectors[cardinality, ordinal] = vector
                symmetric[cardinality, ordinal] = (
                    _zeroed(normal_form(-pc for pc in prime)) == prime
                )
                by_vector[cardinality, vector].append(ordinal)

        for prime, (cardinality, ordinal) in self._prime_index.items():
            vector = vectors[cardinality, ordinal]
            partners = [o for o in by_vector[cardinality, vector] if o != ordinal]
            z_relation = (cardinality, partners[0]) if partners else None
            orientations = (0,) if symmetric[cardinality, ordinal] else (1, -1)
            for inversion in orientations:
                label = forte_label(cardinality, ordinal, inversion, z_relation is not None)
                self._entries[cardinality, ordinal, inversion] = ChordTableEntry(
                    cardinality=cardinality,
                    ordinal=ordinal,
                    inversion=inversion,
                    prime_form=prime,
                    interval_vector=vector,
                    common_name=_common_name(cardinality, ordinal, inversion, label),
                    z_relation=z_relation,
                )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def seek_address(self, pitch_classes: Iterable[int]) -> ChordTableAddress:
        """
        Locate a pitch-class set in the tables.

        Raises:
            ChordTablesError: If no catalogued class matches the set.
        """
        pcs = _pitch_class_set(pitch_classes)
        normal = normal_form(pcs)
        original = _zeroed(normal)
        inverted = _zeroed(normal_form(-pc for pc in pcs))
        prime = min(original, inverted)
        try:
            cardinality, ordinal = self._prime_index[prime]
        except KeyError:
            raise ChordTablesError(
                f"No classification found for pitch classes {pcs}."
            ) from None

        if original == inverted:
            inversion = 0
        elif original == prime:
            inversion = 1
        else:
            inversion = -1
        return ChordTableAddress(
            cardinality=cardinality,
            forte_class=ordinal,
            inversion=inversion,
            pc_original=normal[0] if normal else 0,
        )

    def entry(self, key: TableKey | ChordTableAddress) -> ChordTableEntry:
        """
        Return the entry stored under a (cardinality, ordinal, inversion) key.

        Raises:
            ChordTablesError: If the key is not in the tables.
        """
        if isinstance(key, ChordTableAddress):
            key = key.key
        try:
            return self._entries[tuple(key)]  # type: ignore[index]
        except KeyError:
            raise ChordTablesError(f"No chord table entry for {key}.") from None

    def lookup(self, pitch_classes: Iterable[int]) -> ChordTableEntry:
        return self.entry(self.seek_address(pitch_classes))

    def z_partner(self, entry: ChordTableEntry) -> ChordTableEntry | None:
        """
        Return the Z-related class of *entry* (same orientation when the
        partner has one), or None.
        """
        if entry.z_relation is None:
            return None
        cardinality, ordinal = entry.z_relation
        for inversion in (entry.inversion, 1, 0):
            candidate = self._entries.get((cardinality, ordinal, inversion))
            if candidate is not None:
                return candidate
        raise ChordTablesError(f"Z partner {entry.z_relation} is missing from the tables.")

    def entries(self, cardinality: int | None = None) -> Iterator[ChordTableEntry]:
        for entry in self._entries.values():
            if cardinality is None or entry.cardinality == cardinality:
                yield entry

    def __len__(self) -> int:
        return len(self._entries)


@lru_cache(maxsize=1)
def get_chord_tables() -> ChordTables:
    """Return the process-wide chord tables, building them on first call."""
    return ChordTables()
