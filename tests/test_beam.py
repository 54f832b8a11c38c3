"""Unit tests for Beams and the whole-sequence beam passes."""

import pytest

from chordmeter.beam import Beam, Beams, beam_labels
from chordmeter.duration import events_from_durations


def _beams(*types: str) -> Beams:
    beams = Beams().fill(len(types))
    for number, beam_type in enumerate(types, start=1):
        beams.set_by_number(number, beam_type)
    return beams


def test_fill_by_count() -> None:
    beams = Beams().fill(3)
    assert beams.get_numbers() == [1, 2, 3]
    assert beams.get_types() == [None, None, None]


def test_fill_by_duration_type() -> None:
    assert len(Beams().fill("32nd")) == 3
    assert len(Beams().fill("quarter")) == 0


def test_set_and_get_by_number() -> None:
    beams = Beams().fill(2)
    beams.set_by_number(2, "partial-left")
    assert beams.get_type_by_number(2) == "partial-left"
    assert beams.get_by_number(1) == Beam(number=1)


def test_set_rejects_unknown_type() -> None:
    with pytest.raises(ValueError, match="Invalid beam type"):
        Beams().fill(1).set_by_number(1, "middle")


def test_get_missing_number_raises() -> None:
    with pytest.raises(IndexError):
        Beams().fill(1).get_by_number(2)


def test_as_dict_skips_unassigned() -> None:
    beams = Beams().fill(2)
    beams.set_by_number(1, "start")
    assert beams.as_dict() == {1: "start"}


def test_repr() -> None:
    assert repr(_beams("start", "stop")) == "<Beams 1/start, 2/stop>"


def test_beam_labels() -> None:
    assert beam_labels([_beams("continue"), None]) == [{1: "continue"}, None]


# ---------------------------------------------------------------------------
# Whole-sequence passes
# ---------------------------------------------------------------------------

def test_naive_beams_follow_duration_type() -> None:
    events = events_from_durations([1, 0.5, 0.25, 0.125, 0.5], rests={4})
    beams_list = Beams.naive_beams(events)
    assert beams_list[0] is None
    assert len(beams_list[1]) == 1
    assert len(beams_list[2]) == 2
    assert len(beams_list[3]) == 3
    assert beams_list[4] is None


def test_remove_sandwiched_unbeamables() -> None:
    lonely = Beams().fill(1)
    paired = [Beams().fill(1), Beams().fill(1)]
    assert Beams.remove_sandwiched_unbeamables([None, lonely, None]) == [None, None, None]
    assert Beams.remove_sandwiched_unbeamables(paired) == paired


def test_remove_sandwiched_single_event() -> None:
    assert Beams.remove_sandwiched_unbeamables([Beams().fill(1)]) == [None]


def test_sanitize_drops_partial_only_events() -> None:
    partial_only = _beams("partial-left")
    mixed = _beams("stop", "partial-left")
    result = Beams.sanitize_partial_beams([partial_only, mixed, None])
    assert result == [None, mixed, None]


def test_merge_partial_right_into_partial_left() -> None:
    result = Beams.merge_connecting_partial_beams(
        [_beams("partial-right"), _beams("partial-left")]
    )
    assert beam_labels(result) == [{1: "start"}, {1: "stop"}]


def test_merge_partial_right_into_stop() -> None:
    result = Beams.merge_connecting_partial_beams(
        [_beams("start", "partial-right"), _beams("stop", "stop")]
    )
    assert beam_labels(result) == [{1: "start", 2: "start"}, {1: "stop", 2: "stop"}]


def test_merge_start_into_partial_left() -> None:
    result = Beams.merge_connecting_partial_beams(
        [_beams("start", "start"), _beams("stop", "partial-left")]
    )
    assert beam_labels(result)[1] == {1: "stop", 2: "stop"}


def test_merge_leaves_unmatched_partials() -> None:
    result = Beams.merge_connecting_partial_beams(
        [_beams("start", "partial-right"), _beams("stop")]
    )
    assert beam_labels(result) == [{1: "start", 2: "partial-right"}, {1: "stop"}]
