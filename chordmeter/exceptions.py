"""Exception hierarchy shared by the chord and meter modules."""


class ChordMeterError(Exception):
    """Base class for every error raised by chordmeter."""


class PitchError(ChordMeterError, ValueError):
    """A pitch name or number could not be interpreted."""


class MeterError(ChordMeterError, ValueError):
    """A meter string or numerator/denominator pair is invalid."""


class ChordTablesError(ChordMeterError, KeyError):
    """A pitch-class set (or its Z partner) has no classification table entry."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""
