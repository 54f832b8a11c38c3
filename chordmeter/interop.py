"""Adapters between music21 objects and chordmeter types."""

from __future__ import annotations

from typing import Any

from chordmeter.beam import BeamAnomaly, BeamsList
from chordmeter.chord import Chord
from chordmeter.meter import TimeSignature
from chordmeter.pitch import Pitch


def chord_from_music21(m21_chord: Any) -> Chord:
    """
    Build a :class:`Chord` from a music21 Chord (or anything whose
    ``pitches`` carry a ``nameWithOctave``).

    Raises:
        ValueError: If the object has no pitches.
    """
    pitches = getattr(m21_chord, "pitches", None)
    if pitches is None:
        raise ValueError(f"{m21_chord!r} has no pitches.")
    return Chord([_pitch_from_music21(p) for p in pitches])


def _pitch_from_music21(m21_pitch: Any) -> Pitch:
    name = getattr(m21_pitch, "nameWithOctave", None) or getattr(m21_pitch, "name", None)
    if not isinstance(name, str):
        raise ValueError(f"Cannot read a pitch name from {m21_pitch!r}.")
    return Pitch.from_name(name)


def time_signature_from_music21(m21_time_signature: Any) -> TimeSignature:
    """Convert a music21 TimeSignature through its ``ratioString``."""
    ratio = getattr(m21_time_signature, "ratioString", None)
    if not isinstance(ratio, str) or not ratio:
        raise ValueError(f"{m21_time_signature!r} has no ratio string.")
    return TimeSignature(ratio)


def time_signature_to_music21(time_signature: TimeSignature) -> Any:
    from music21 import meter

    return meter.TimeSignature(time_signature.ratio_string)


def beams_for_measure(
    measure: Any,
    time_signature: TimeSignature | None = None,
    diagnostics: list[BeamAnomaly] | None = None,
) -> BeamsList:
    """
    Beam the notes and rests of a music21 Measure.

    The meter is taken from *time_signature*, else from the measure's own (or
    inherited) time signature, else 4/4. Offsets are measure-relative, so
    beaming always starts at the barline.
    """
    if time_signature is None:
        time_signature = _measure_time_signature(measure)
    events = list(measure.notesAndRests)
    return time_signature.get_beams(events, diagnostics=diagnostics)


def _measure_time_signature(measure: Any) -> TimeSignature:
    m21_ts = getattr(measure, "timeSignature", None)
    if m21_ts is None and hasattr(measure, "getContextByClass"):
        m21_ts = measure.getContextByClass("TimeSignature")
    if m21_ts is None:
        return TimeSignature("4/4")
    return time_signature_from_music21(m21_ts)
