"""Unit tests for Chord classification and tertian queries."""

import logging

import pytest

from chordmeter.chord import Chord, classify
from chordmeter.chord_tables import get_chord_tables
from chordmeter.exceptions import ChordMeterError, ChordTablesError
from chordmeter.pitch import Pitch


def _names(pitches: object) -> list[str]:
    return [p.name_with_octave for p in pitches]  # type: ignore[attr-defined]


# ---------------------------------------------------------------------------
# Set-class classification
# ---------------------------------------------------------------------------

def test_classify_major_triad() -> None:
    result = classify(["C4", "E4", "G4"])
    assert result.is_classified
    assert result.forte_class == "3-11B"
    assert result.forte_class_tni == "3-11"
    assert result.common_name == "major triad"
    assert result.interval_vector == (0, 0, 1, 1, 1, 0)
    assert result.z_relation_partner is None
    assert result.prime_form == (0, 3, 7)
    assert result.pitch_classes == (0, 4, 7)


def test_classify_dominant_seventh() -> None:
    result = classify(["G4", "B4", "D5", "F5"])
    assert result.forte_class == "4-27B"
    assert result.common_name == "dominant seventh chord"


def test_classify_reports_z_partner() -> None:
    result = classify([0, 1, 4, 6])
    assert result.forte_class == "4-Z15A"
    assert result.z_relation_partner == "4-Z29"


def test_classify_is_order_and_octave_independent() -> None:
    first = classify(["E4", "C4", "G4"])
    second = classify(["G2", "E5", "C3", "C6"])
    assert first.forte_class == second.forte_class
    assert first.interval_vector == second.interval_vector


def test_classify_degrades_lookup_failure(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture) -> None:
    tables = get_chord_tables()

    def fail(pitch_classes: object) -> None:
        raise ChordTablesError("No classification found for pitch classes [0].")

    monkeypatch.setattr(tables, "seek_address", fail)
    with caplog.at_level(logging.WARNING, logger="chordmeter.chord"):
        result = classify(["C4"])
    assert not result.is_classified
    assert result.forte_class is None
    assert result.pitch_classes == (0,)
    assert "unclassified" in caplog.text


def test_chord_properties_match_classify() -> None:
    chord = Chord(["C4", "E-4", "G4"])
    assert chord.forte_class == "3-11A"
    assert chord.forte_class_tni == "3-11"
    assert chord.forte_class_number == 11
    assert chord.common_name == "minor triad"
    assert chord.classify().forte_class == chord.forte_class


def test_normal_and_prime_form() -> None:
    chord = Chord("G4 B4 D5 F5")
    assert chord.normal_form == (11, 2, 5, 7)
    assert chord.prime_form == (0, 2, 5, 8)


def test_address_recomputed_after_mutation() -> None:
    chord = Chord(["C4", "E4", "G4"])
    assert chord.forte_class == "3-11B"
    chord.add("B-4")
    assert chord.forte_class == "4-27B"
    chord.pitches = ["C4", "E-4", "G-4", "A4"]
    assert chord.forte_class == "4-28"


def test_table_entries_round_trip() -> None:
    for entry in get_chord_tables().entries():
        if entry.cardinality == 0:
            continue
        chord = Chord(list(entry.pitch_classes))
        assert chord.forte_class == entry.forte_class


# ---------------------------------------------------------------------------
# Z relations
# ---------------------------------------------------------------------------

def test_are_z_relations_is_symmetric() -> None:
    first = Chord([0, 1, 4, 6])
    second = Chord([0, 1, 3, 7])
    assert first.are_z_relations(second)
    assert second.are_z_relations(first)
    assert not first.are_z_relations(Chord([0, 4, 7]))


def test_get_z_relation_builds_partner_prime() -> None:
    partner = Chord([0, 1, 4, 6]).get_z_relation()
    assert partner.ordered_pitch_classes == [0, 1, 3, 7]
    assert partner.forte_class_tni == "4-Z29"


def test_get_z_relation_without_partner_raises() -> None:
    chord = Chord(["C4", "E4", "G4"])
    assert not chord.has_z_relation
    with pytest.raises(ChordTablesError):
        chord.get_z_relation()


# ---------------------------------------------------------------------------
# Root, bass and inversion
# ---------------------------------------------------------------------------

def test_root_of_c_major_triad() -> None:
    chord = Chord(["C4", "E4", "G4"])
    assert chord.root().name_with_octave == "C4"
    assert chord.bass().name_with_octave == "C4"
    assert chord.inversion() == 0
    assert chord.is_major_triad()


def test_first_inversion() -> None:
    chord = Chord(["E3", "G3", "C4"])
    assert chord.root().name == "C"
    assert chord.inversion() == 1


def test_second_inversion() -> None:
    chord = Chord(["G3", "C4", "E4"])
    assert chord.inversion() == 2


def test_third_inversion_seventh() -> None:
    chord = Chord(["F3", "G3", "B3", "D4"])
    assert chord.root().name == "G"
    assert chord.inversion() == 3


def test_root_tie_goes_to_lowest_candidate() -> None:
    # neither D nor C has a third above it
    chord = Chord(["C5", "D4"])
    assert chord.root().name_with_octave == "D4"


def test_root_of_single_pitch() -> None:
    assert Chord(["F#3"]).root().name_with_octave == "F#3"


def test_root_override_is_sticky() -> None:
    chord = Chord(["C4", "E4", "A4"])
    assert chord.root().name == "A"
    chord.root("C4")
    assert chord.root().name == "C"
    chord.add("G4")
    assert chord.root().name == "C"
    chord.clear_root()
    assert chord.root().name == "A"


def test_bass_override() -> None:
    chord = Chord(["C4", "E4", "G4"])
    chord.bass("E3")
    assert chord.bass().name_with_octave == "E3"
    assert chord.inversion() == 1
    chord.add("G3")
    assert chord.bass().name_with_octave == "E3"
    chord.clear_bass()
    assert chord.bass().name_with_octave == "G3"
    assert chord.inversion() == 2


def test_empty_chord_queries() -> None:
    chord = Chord()
    assert chord.bass() is None
    with pytest.raises(ChordMeterError):
        chord.root()
    with pytest.raises(ChordMeterError):
        chord.inversion()


def test_chord_steps() -> None:
    chord = Chord(["G4", "B4", "D5", "F5"])
    assert chord.third.name == "B"
    assert chord.fifth.name == "D"
    assert chord.seventh.name == "F"
    assert chord.get_chord_step(9) is None
    assert chord.semitones_from_chord_step(3) == 4
    assert chord.semitones_from_chord_step(7) == 10
    assert chord.semitones_from_chord_step(9) is None


def test_semitones_from_chord_step_with_test_root() -> None:
    chord = Chord(["C4", "E4", "G4"])
    assert chord.semitones_from_chord_step(3, test_root="E4") == 3


def test_missing_steps_are_none() -> None:
    chord = Chord(["C4", "G4"])
    assert chord.third is None
    assert chord.seventh is None


# ---------------------------------------------------------------------------
# Qualities
# ---------------------------------------------------------------------------

def test_triad_qualities() -> None:
    assert Chord("A3 C4 E4").is_minor_triad()
    assert Chord("B3 D4 F4").is_diminished_triad()
    assert Chord("C4 E4 G#4").is_augmented_triad()
    assert not Chord("C4 E4 G4").is_minor_triad()


def test_triad_requires_three_pitch_classes() -> None:
    assert Chord("C3 C4 E4 G4 G5").is_major_triad()
    assert not Chord("C4 E4").is_major_triad()
    assert not Chord("C4 C5 E4 E5").is_major_triad()


def test_triad_check_allows_added_tones() -> None:
    assert Chord("C4 E4 G4 B-4").is_major_triad()
    assert Chord("A3 C4 E4 G4 B4").is_minor_triad()
    assert not Chord("C4 E-4 G4 B-4").is_major_triad()


def test_seventh_qualities() -> None:
    assert Chord("G3 B3 D4 F4").is_dominant_seventh()
    assert Chord("B3 D4 F4 A-4").is_diminished_seventh()
    assert not Chord("C4 E4 G4 B4").is_dominant_seventh()
    assert Chord("C4 E4 G4 B4").is_seventh_of_type([0, 4, 7, 11])


def test_seventh_requires_four_pitch_classes() -> None:
    assert not Chord("G3 B3 D4").is_dominant_seventh()
    assert not Chord("G3 B3 D4 G4 B4").is_seventh_of_type([0, 4, 7, 10])


def test_ninth_chord_contains_its_seventh() -> None:
    chord = Chord("G3 B3 D4 F4 A4")
    assert chord.cardinality() == 5
    assert chord.is_dominant_seventh()
    assert chord.is_seventh_of_type([0, 4, 7, 10])
    assert not chord.is_seventh_of_type([0, 4, 7, 11])


def test_enharmonic_spelling_matters_for_qualities() -> None:
    # same pitch classes as C major, but spelled without a third
    chord = Chord(["C4", "F-4", "G4"])
    assert chord.forte_class == "3-11B"
    assert not chord.is_major_triad()


def test_dominant_and_tonic_function() -> None:
    assert Chord("G3 B3 D4 F4").can_be_dominant_v()
    assert Chord("G3 B3 D4").can_be_dominant_v()
    assert not Chord("A3 C4 E4").can_be_dominant_v()
    assert Chord("A3 C4 E4").can_be_tonic()
    assert not Chord("B3 D4 F4").can_be_tonic()
    assert not Chord("B3 D4 F4 A-4").can_be_dominant_v()


# ---------------------------------------------------------------------------
# Construction and collection behaviour
# ---------------------------------------------------------------------------

def test_from_definition() -> None:
    assert _names(Chord.from_definition("D4", "minor")) == ["D4", "F4", "A4"]
    assert _names(Chord.from_definition("G3", "dominant-seventh")) == ["G3", "B3", "D4", "F4"]
    assert Chord.from_definition("B3", "half-diminished-seventh").forte_class == "4-27A"


def test_from_definition_unknown_type() -> None:
    with pytest.raises(ValueError, match="Unknown chord type"):
        Chord.from_definition("C4", "sus4")


def test_root_position_definitions_have_inversion_zero() -> None:
    for chord_type in ("major", "minor", "diminished", "augmented", "major-seventh",
                       "dominant-seventh", "minor-seventh", "diminished-seventh"):
        assert Chord.from_definition("E-3", chord_type).inversion() == 0, chord_type


def test_add_sorts_by_default() -> None:
    chord = Chord(["E4", "G4"])
    chord.add("C4")
    assert _names(chord) == ["C4", "E4", "G4"]
    chord.add(["C5"], run_sort=False)
    chord.add("A3", run_sort=False)
    assert _names(chord)[-1] == "A3"
    chord.sort_pitches()
    assert _names(chord)[0] == "A3"


def test_remove_duplicate_pitches() -> None:
    chord = Chord(["C4", "E4", "G4", "C5", "E4"])
    assert chord.remove_duplicate_pitches() is chord
    assert _names(chord) == ["C4", "E4", "G4", "C5"]


def test_remove_duplicate_pitches_keeps_octave_doublings() -> None:
    chord = Chord(["C5", "E4", "C4", "G4", "E5"])
    chord.remove_duplicate_pitches()
    assert len(chord) == 5


def test_cardinality_counts_pitch_classes() -> None:
    chord = Chord(["C3", "C4", "E4", "B#4"])
    assert len(chord) == 4
    assert chord.cardinality() == 2
    assert chord.ordered_pitch_classes == [0, 4]


def test_iteration_uses_snapshot() -> None:
    chord = Chord(["C4", "E4"])
    seen = []
    for pitch in chord:
        seen.append(pitch)
        chord.add("G4")
    assert len(seen) == 2
    assert len(chord) == 4


def test_indexing_and_repr() -> None:
    chord = Chord([Pitch.from_name("D4"), 66, "A4"])
    assert chord[1].name_with_octave == "F#4"
    assert repr(chord) == "<Chord D4 F#4 A4>"
