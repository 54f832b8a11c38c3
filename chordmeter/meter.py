"""
TimeSignature: beat grouping and beam assignment for one meter.

Beat groups follow fixed rhythmic conventions: compound and irregular meters
group eighth notes in threes and twos, simple meters fall back to a single
repeating group. Beam assignment walks the events of a measure once per beam
depth and marks each beam start, continue, stop or partial.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from fractions import Fraction
from typing import Any

from chordmeter.beam import BeamAnomaly, Beams, BeamsList
from chordmeter.duration import (
    BEAMABLE_DURATION_TYPES,
    QuarterLength,
    event_offset,
    event_quarter_length,
    op_frac,
)
from chordmeter.exceptions import MeterError

logger = logging.getLogger(__name__)

_RATIO_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d+)\s*$")

BeatGroups = list[list[Any]]


def compute_beat_groups(numerator: int, denominator: int) -> BeatGroups:
    """
    Compute the beat groups of a meter as ``[count, denominator]`` pairs.

    Meters with five or more beats over a quarter or longer are first
    rewritten in eighth notes (5/4 -> 10/8). Eighth-based meters are then
    split greedily into threes, with a remainder of four split into two twos.

    >>> compute_beat_groups(7, 8)
    [[3, 8], [2, 8], [2, 8]]
    """
    groups: BeatGroups = []
    num_beats: Fraction | int = numerator
    beat_value = denominator
    if beat_value < 8 and num_beats >= 5:
        num_beats = _whole(num_beats * Fraction(8, beat_value))
        beat_value = 8

    if beat_value >= 8:
        while num_beats >= 5:
            groups.append([3, beat_value])
            num_beats -= 3
        if num_beats == 4:
            groups.append([2, beat_value])
            groups.append([2, beat_value])
        elif num_beats > 0:
            groups.append([_whole(num_beats), beat_value])
    elif beat_value == 2:
        groups.append([1, 2])
    elif beat_value <= 1:
        groups.append([1, 1])
    else:
        # 2/4, 3/4, 4/4 and other simple meters
        groups.append([2, 8])
    return groups


def _whole(value: Fraction | int) -> Fraction | int:
    if isinstance(value, Fraction) and value.denominator == 1:
        return value.numerator
    return value


def parse_ratio_string(meter_string: str) -> tuple[int, int]:
    """
    Parse ``"N/D"`` into positive integers.

    Raises:
        MeterError: If the string is malformed or either part is zero.
    """
    match = _RATIO_RE.match(meter_string) if isinstance(meter_string, str) else None
    if not match:
        raise MeterError(f"Invalid meter string {meter_string!r}; expected 'N/D', e.g. '6/8'.")
    numerator, denominator = int(match.group(1)), int(match.group(2))
    _check_positive("numerator", numerator)
    _check_positive("denominator", denominator)
    return numerator, denominator


def _check_positive(label: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise MeterError(f"Meter {label} must be a positive integer, got {value!r}.")


class TimeSignature:
    """
    A meter such as 4/4 or 6/8 with its beat structure.

    Derived values (beat groups, beat count, beat duration) are computed on
    demand; explicit overrides take precedence until cleared.

    Usage:

        ts = TimeSignature("6/8")
        ts.beat_groups   # [[3, 8], [3, 8]]
        ts.get_beams(events)
    """

    def __init__(self, meter_string: str = "4/4") -> None:
        self._numerator, self._denominator = parse_ratio_string(meter_string)
        self._beat_groups: BeatGroups = []
        self._beat_groups_need_updating = True
        self._overwritten_beat_count: int | None = None
        self._overwritten_beat_duration: Fraction | None = None

    def __repr__(self) -> str:
        return f"<TimeSignature {self.ratio_string}>"

    # ------------------------------------------------------------------
    # Numerator / denominator
    # ------------------------------------------------------------------

    @property
    def numerator(self) -> int:
        return self._numerator

    @numerator.setter
    def numerator(self, value: int) -> None:
        _check_positive("numerator", value)
        self._numerator = value
        self._beat_groups_need_updating = True

    @property
    def denominator(self) -> int:
        return self._denominator

    @denominator.setter
    def denominator(self, value: int) -> None:
        _check_positive("denominator", value)
        self._denominator = value
        self._beat_groups_need_updating = True

    @property
    def ratio_string(self) -> str:
        return f"{self._numerator}/{self._denominator}"

    @ratio_string.setter
    def ratio_string(self, meter_string: str) -> None:
        # parse fully before touching state
        self._numerator, self._denominator = parse_ratio_string(meter_string)
        self._beat_groups_need_updating = True

    @property
    def bar_duration(self) -> Fraction:
        """Length of a full bar in quarter notes."""
        return Fraction(4 * self._numerator, self._denominator)

    # ------------------------------------------------------------------
    # Beat structure
    # ------------------------------------------------------------------

    @property
    def beat_groups(self) -> BeatGroups:
        if self._beat_groups_need_updating:
            self._beat_groups = self.compute_beat_groups()
            self._beat_groups_need_updating = False
        return [list(group) for group in self._beat_groups]

    @beat_groups.setter
    def beat_groups(self, new_groups: BeatGroups) -> None:
        groups = [list(group) for group in new_groups]
        if not groups:
            self._beat_groups_need_updating = True
            return
        for group in groups:
            if len(group) != 2 or group[0] <= 0 or group[1] <= 0:
                raise MeterError(f"Invalid beat group {group!r}; expected [count, denominator].")
        self._beat_groups = groups
        self._beat_groups_need_updating = False

    def compute_beat_groups(self) -> BeatGroups:
        return compute_beat_groups(self._numerator, self._denominator)

    @property
    def beat_count(self) -> int:
        """Beats per bar: compound meters count dotted beats (6/8 -> 2)."""
        if self._overwritten_beat_count is not None:
            return self._overwritten_beat_count
        if self._numerator > 3 and self._numerator % 3 == 0:
            return self._numerator // 3
        return self._numerator

    @beat_count.setter
    def beat_count(self, overwrite: int | None) -> None:
        if overwrite is not None:
            _check_positive("beat count", overwrite)
        self._overwritten_beat_count = overwrite

    @property
    def beat_duration(self) -> Fraction:
        """Length of one beat in quarter notes."""
        if self._overwritten_beat_duration is not None:
            return self._overwritten_beat_duration
        return self.bar_duration / self.beat_count

    @beat_duration.setter
    def beat_duration(self, overwrite: QuarterLength | None) -> None:
        if overwrite is None:
            self._overwritten_beat_duration = None
            return
        value = op_frac(overwrite)
        if value <= 0:
            raise MeterError(f"Beat duration must be positive, got {overwrite!r}.")
        self._overwritten_beat_duration = value

    def _beat_group_spans(self) -> list[tuple[Fraction, Fraction]]:
        spans = []
        position = Fraction(0)
        for count, denominator in self.beat_groups:
            length = op_frac(Fraction(4) * op_frac(count) / denominator)
            spans.append((position, position + length))
            position += length
        return spans

    def offset_to_span(
        self,
        offset: QuarterLength,
        quarter_length: QuarterLength | None = None,
    ) -> tuple[Fraction, Fraction]:
        """
        Return the ``(start, end)`` of the beam grouping that contains *offset*.

        Eighth-based meters use their beat groups, repeated bar after bar, so
        5/8 groups as 3+2. Other meters use the beat; in simple quadruple
        meters an event of eighth-note length or longer is grouped by half
        bar instead, so four eighths in 4/4 share one beam.
        """
        offset = op_frac(offset)
        if self._overwritten_beat_duration is None and self._denominator >= 8:
            spans = self._beat_group_spans()
            cycle = spans[-1][1]
            bars = math.floor(offset / cycle)
            local = offset - bars * cycle
            for start, end in spans:
                if start <= local < end:
                    return bars * cycle + start, bars * cycle + end

        span = self.beat_duration
        if (
            quarter_length is not None
            and self._numerator == 4
            and self.beat_count == 4
            and op_frac(quarter_length) >= span / 2
        ):
            span *= 2
        start = math.floor(offset / span) * span
        return start, start + span

    # ------------------------------------------------------------------
    # Beaming
    # ------------------------------------------------------------------

    def get_beams(
        self,
        events: Sequence[Any],
        measure_start_offset: QuarterLength = 0,
        diagnostics: list[BeamAnomaly] | None = None,
    ) -> BeamsList:
        """
        Assign beams to the events of one measure.

        Args:
            events:               Notes and rests sorted by offset; anything
                                  exposing ``offset`` and
                                  ``duration.quarterLength`` works.
            measure_start_offset: Added to each event offset before grouping.
            diagnostics:          Collects a :class:`BeamAnomaly` for every
                                  beam that could not be classified.

        Returns:
            One entry per event: a :class:`Beams` object, or None if the
            event is not beamed.
        """
        events = list(events)
        start_offset = op_frac(measure_start_offset)
        beams_list = Beams.naive_beams(events)
        beams_list = Beams.remove_sandwiched_unbeamables(beams_list)
        last_index = len(events) - 1

        def has_number(beams: Beams | None, number: int) -> bool:
            return beams is not None and number in beams.get_numbers()

        def fix_beams_one_element_depth(i: int, event: Any, depth: int) -> None:
            beams = beams_list[i]
            beam_number = depth + 1
            if not has_number(beams, beam_number):
                return
            assert beams is not None
            if beam_number > 1 and beams.get_type_by_number(beam_number - 1) is None:
                # the coarser beam was never assigned
                return

            quarter_length = event_quarter_length(event)
            start = event_offset(event) + start_offset
            end = start + quarter_length
            start_next = end
            is_first = i == 0
            is_last = i == last_index
            beam_previous = None if is_first else beams_list[i - 1]
            beam_next = None if is_last else beams_list[i + 1]
            previous_has = has_number(beam_previous, beam_number)
            next_has = has_number(beam_next, beam_number)
            previous_type = None
            if beam_previous is not None and previous_has:
                previous_type = beam_previous.get_type_by_number(beam_number)
            previous_ended = previous_type in ("stop", "partial-left")

            span_start, span_end = self.offset_to_span(start, quarter_length)
            next_span_start = Fraction(0)
            if beam_next is not None:
                next_span_start = self.offset_to_span(start_next, quarter_length)[0]

            if start == span_start and end == span_end:
                beams_list[i] = None
                return

            if is_first:
                beam_type = "start" if next_has else "partial-right"
            elif is_last:
                beam_type = "stop" if previous_has and not previous_ended else "partial-left"
            elif not previous_has:
                if beam_next is None or start_next >= span_end:
                    beam_type = "partial-left"
                elif not next_has:
                    beam_type = "partial-right"
                else:
                    beam_type = "start"
            elif previous_ended:
                beam_type = "start" if next_has else "partial-left"
            elif not next_has:
                beam_type = "stop"
            elif start_next < span_end:
                beam_type = "continue"
            elif start_next >= next_span_start:
                beam_type = "stop"
            else:
                anomaly = BeamAnomaly(
                    index=i,
                    beam_number=beam_number,
                    offset=start,
                    message="cannot match beam type",
                )
                logger.warning(
                    "Cannot match beam type for event %d (beam %d) at offset %s in %s",
                    i, beam_number, start, self.ratio_string,
                )
                if diagnostics is not None:
                    diagnostics.append(anomaly)
                return
            beams.set_by_number(beam_number, beam_type)

        for depth in range(len(BEAMABLE_DURATION_TYPES)):
            for i, event in enumerate(events):
                fix_beams_one_element_depth(i, event, depth)

        beams_list = Beams.sanitize_partial_beams(beams_list)
        beams_list = Beams.merge_connecting_partial_beams(beams_list)
        return beams_list
