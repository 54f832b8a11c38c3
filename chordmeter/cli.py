"""chordmeter CLI entry point."""

import json
import logging
import sys
from fractions import Fraction
from typing import Any

import click

from chordmeter import __version__
from chordmeter.beam import beam_labels
from chordmeter.chord import Chord
from chordmeter.duration import NoteEvent, op_frac, quarter_length_to_type
from chordmeter.exceptions import ChordMeterError
from chordmeter.meter import TimeSignature

REST_PREFIX = "r"


def _parse_duration(token: str) -> tuple[Fraction, bool]:
    """Parse ``"0.5"``, ``"1/3"`` or ``"r1"`` (a rest) into a quarter length."""
    is_rest = token.lower().startswith(REST_PREFIX)
    text = token[len(REST_PREFIX):] if is_rest else token
    try:
        value = Fraction(text)
    except (ValueError, ZeroDivisionError):
        raise click.BadParameter(f"'{token}' is not a duration in quarter notes.") from None
    if value <= 0:
        raise click.BadParameter(f"Duration '{token}' must be positive.")
    return op_frac(value), is_rest


def _fraction_text(value: Fraction) -> str:
    return str(value.numerator) if value.denominator == 1 else f"{value.numerator}/{value.denominator}"


def _json_number(value: Any) -> Any:
    if isinstance(value, Fraction):
        return _fraction_text(value)
    return value


def _emit(payload: dict[str, Any], as_json: bool, lines: list[str]) -> None:
    if as_json:
        click.echo(json.dumps(payload, indent=2))
        return
    for line in lines:
        click.echo(line)


def _fail(exc: Exception) -> None:
    click.echo(f"  ERROR: {exc}", err=True)
    sys.exit(1)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="chordmeter")
@click.option("--verbose", "-v", is_flag=True, help="Log table lookups and beaming anomalies.")
def main(verbose: bool) -> None:
    """chordmeter: chord classification and meter-aware beaming."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ── classify subcommand ────────────────────────────────────────────────────────

@main.command()
@click.argument("pitches", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def classify(pitches: tuple[str, ...], as_json: bool) -> None:
    """
    Classify a chord given as pitch names or numbers.

    \b
    Examples:
      chordmeter classify C4 E4 G4
      chordmeter classify G3 B3 D4 F4 --json
      chordmeter classify 0 4 7 10
    """
    try:
        chord = Chord([int(p) if p.isdigit() else p for p in pitches])
        result = chord.classify()
        root = chord.root()
        bass = chord.bass()
        inversion = chord.inversion()
    except ChordMeterError as exc:
        _fail(exc)
        return

    qualities = [
        name
        for name, present in (
            ("major triad", chord.is_major_triad()),
            ("minor triad", chord.is_minor_triad()),
            ("diminished triad", chord.is_diminished_triad()),
            ("augmented triad", chord.is_augmented_triad()),
            ("dominant seventh", chord.is_dominant_seventh()),
            ("diminished seventh", chord.is_diminished_seventh()),
        )
        if present
    ]
    payload = {
        "pitches": [p.name_with_octave for p in chord],
        "pitch_classes": list(result.pitch_classes),
        "forte_class": result.forte_class,
        "forte_class_tni": result.forte_class_tni,
        "common_name": result.common_name,
        "interval_vector": list(result.interval_vector) if result.interval_vector else None,
        "z_relation": result.z_relation_partner,
        "root": root.name_with_octave,
        "bass": bass.name_with_octave if bass is not None else None,
        "inversion": inversion,
        "qualities": qualities,
    }
    vector = "".join(str(n) for n in result.interval_vector) if result.interval_vector else "-"
    lines = [
        f"  Pitches    : {' '.join(payload['pitches'])}",
        f"  Forte class: {result.forte_class or 'unclassified'}"
        + (f"  (Z: {result.z_relation_partner})" if result.z_relation_partner else ""),
        f"  Name       : {result.common_name or '-'}",
        f"  Vector     : <{vector}>",
        f"  Root       : {payload['root']}  |  Bass: {payload['bass']}  |  Inversion: {inversion}",
        f"  Qualities  : {', '.join(qualities) or '-'}",
    ]
    _emit(payload, as_json, lines)


# ── meter subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("meter_string", metavar="N/D")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def meter(meter_string: str, as_json: bool) -> None:
    """
    Show the beat groups and beat structure of a meter.

    \b
    Examples:
      chordmeter meter 6/8
      chordmeter meter 7/8 --json
    """
    try:
        ts = TimeSignature(meter_string)
    except ChordMeterError as exc:
        _fail(exc)
        return

    groups = ts.beat_groups
    payload = {
        "meter": ts.ratio_string,
        "beat_groups": [[_json_number(count), den] for count, den in groups],
        "beat_count": ts.beat_count,
        "beat_duration": _fraction_text(ts.beat_duration),
        "bar_duration": _fraction_text(ts.bar_duration),
    }
    lines = [
        f"  Meter        : {ts.ratio_string}",
        f"  Beat groups  : {' + '.join(f'{count}/{den}' for count, den in groups)}",
        f"  Beat count   : {ts.beat_count}",
        f"  Beat duration: {payload['beat_duration']} quarter(s)",
        f"  Bar duration : {payload['bar_duration']} quarter(s)",
    ]
    _emit(payload, as_json, lines)


# ── beams subcommand ───────────────────────────────────────────────────────────

@main.command()
@click.argument("meter_string", metavar="N/D")
@click.argument("durations", nargs=-1, required=True)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def beams(meter_string: str, durations: tuple[str, ...], as_json: bool) -> None:
    """
    Beam one measure of durations (in quarter notes) laid end to end.

    Prefix a duration with 'r' to make it a rest.

    \b
    Examples:
      chordmeter beams 4/4 0.5 0.5 0.5 0.5 2
      chordmeter beams 6/8 1/2 1/4 1/4 r1/2 1/2 1/2 1/2
    """
    try:
        ts = TimeSignature(meter_string)
    except ChordMeterError as exc:
        _fail(exc)
        return

    events: list[NoteEvent] = []
    offset = Fraction(0)
    for token in durations:
        quarter_length, is_rest = _parse_duration(token)
        events.append(NoteEvent(offset=offset, duration=quarter_length, is_rest=is_rest))
        offset += quarter_length

    if offset > ts.bar_duration:
        click.echo(
            f"  WARNING: durations total {_fraction_text(offset)} quarters, "
            f"more than one {ts.ratio_string} bar.",
            err=True,
        )

    labels = beam_labels(ts.get_beams(events))
    payload = {
        "meter": ts.ratio_string,
        "events": [
            {
                "offset": _fraction_text(event.offset),
                "duration": _fraction_text(event.duration.quarter_length),
                "rest": event.is_rest,
                "beams": label,
            }
            for event, label in zip(events, labels)
        ],
    }
    lines = []
    for event, label in zip(events, labels):
        kind = "rest" if event.is_rest else quarter_length_to_type(event.duration.quarter_length)
        text = ", ".join(f"{n}:{t}" for n, t in label.items()) if label else "-"
        lines.append(f"  {_fraction_text(event.offset):>6}  {kind:<8}  {text}")
    _emit(payload, as_json, lines)
