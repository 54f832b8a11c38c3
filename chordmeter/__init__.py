"""chordmeter: chord set-class analysis and meter-aware beam grouping."""

from chordmeter.beam import Beam, BeamAnomaly, Beams, beam_labels
from chordmeter.chord import Chord, ClassificationResult, classify
from chordmeter.chord_tables import get_chord_tables
from chordmeter.duration import Duration, NoteEvent, events_from_durations
from chordmeter.exceptions import ChordMeterError, ChordTablesError, MeterError, PitchError
from chordmeter.meter import TimeSignature, compute_beat_groups
from chordmeter.pitch import Pitch

__version__ = "0.1.0"

__all__ = [
    "Beam",
    "BeamAnomaly",
    "Beams",
    "Chord",
    "ChordMeterError",
    "ChordTablesError",
    "ClassificationResult",
    "Duration",
    "MeterError",
    "NoteEvent",
    "Pitch",
    "PitchError",
    "TimeSignature",
    "beam_labels",
    "classify",
    "compute_beat_groups",
    "events_from_durations",
    "get_chord_tables",
]
