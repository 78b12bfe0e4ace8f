"""Time range value object and wall-clock time conversions."""

import re
from dataclasses import dataclass
from typing import Optional


MINUTES_PER_DAY = 24 * 60
DEFAULT_MINIMUM_DURATION_MINUTES = 180

_TWELVE_HOUR_PATTERN = re.compile(
    r"^\s*(\d{1,2})(?::(\d{1,2}))?\s*([AaPp])\.?\s*[Mm]\.?\s*$"
)
_TWENTY_FOUR_HOUR_PATTERN = re.compile(r"^\s*(\d{1,2})(?::(\d{1,2}))?(?::(\d{1,2}))?\s*$")


def _is_twelve_hour(value: str) -> bool:
    return bool(_TWELVE_HOUR_PATTERN.match(value))


def to_minutes(value: str) -> int:
    """Convert ``"H:MM AM/PM"`` or ``"HH:MM"`` to minutes since midnight.

    Missing minutes are read as ``:00`` (``"9"`` is ``09:00``). Seconds in a
    24-hour value (``"09:00:00"``) are ignored.
    """
    if value is None:
        raise ValueError("Time value is required")

    text = str(value)
    match = _TWELVE_HOUR_PATTERN.match(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        period = match.group(3).upper()
        if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
            raise ValueError(f"Invalid 12-hour time: {value!r}")
        if period == "A" and hours == 12:
            hours = 0
        elif period == "P" and hours != 12:
            hours += 12
        return hours * 60 + minutes

    match = _TWENTY_FOUR_HOUR_PATTERN.match(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        if not 0 <= hours <= 23 or not 0 <= minutes <= 59:
            raise ValueError(f"Invalid 24-hour time: {value!r}")
        return hours * 60 + minutes

    raise ValueError(f"Unrecognized time format: {value!r}")


def format_24_hour(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    _check_minutes(minutes)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_12_hour(minutes: int) -> str:
    """Format minutes since midnight as ``H:MM AM/PM``."""
    _check_minutes(minutes)
    hours, mins = divmod(minutes, 60)
    period = "PM" if hours >= 12 else "AM"
    display_hour = hours % 12 or 12
    return f"{display_hour}:{mins:02d} {period}"


def to_24_hour(value: str) -> str:
    """Convert a time string to ``HH:MM``.

    Values already in ``HH:MM`` form are returned unchanged.
    """
    if not _is_twelve_hour(value) and re.match(r"^\d{2}:\d{2}$", value):
        to_minutes(value)
        return value
    return format_24_hour(to_minutes(value))


def to_12_hour(value: str) -> str:
    """Convert a time string to ``H:MM AM/PM``.

    Values already carrying an AM/PM marker are returned unchanged.
    """
    if _is_twelve_hour(value):
        to_minutes(value)
        return value
    return format_12_hour(to_minutes(value))


def _check_minutes(minutes: int) -> None:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for a time of day: {minutes}")


@dataclass(frozen=True)
class TimeRange:
    """Immutable half-open range ``[start, end)`` within one day, in minutes."""

    start: int
    end: int

    def __post_init__(self) -> None:
        """Validate range bounds."""
        _check_minutes(self.start)
        _check_minutes(self.end)
        if self.start >= self.end:
            raise ValueError("Start time must be before end time")

    @classmethod
    def parse(cls, start: str, end: str) -> "TimeRange":
        """Build a range from two time strings in either format."""
        return cls(to_minutes(start), to_minutes(end))

    @classmethod
    def from_hours(cls, start_hour: int, duration_hours: int) -> "TimeRange":
        """Build an hour-aligned range."""
        return cls(start_hour * 60, (start_hour + duration_hours) * 60)

    @property
    def duration_minutes(self) -> int:
        """Length of the range in minutes."""
        return self.end - self.start

    @property
    def start_24(self) -> str:
        return format_24_hour(self.start)

    @property
    def end_24(self) -> str:
        return format_24_hour(self.end)

    @property
    def start_12(self) -> str:
        return format_12_hour(self.start)

    @property
    def end_12(self) -> str:
        return format_12_hour(self.end)

    def is_shorter_than(self, minimum_minutes: int = DEFAULT_MINIMUM_DURATION_MINUTES) -> bool:
        """Check the soft minimum-duration rule."""
        return self.duration_minutes < minimum_minutes

    def overlaps(self, other: "TimeRange") -> bool:
        """Check whether two ranges conflict.

        Touching ranges (one ends where the other starts) do not conflict.
        """
        genuine = self.start < other.end and self.end > other.start
        duplicate = self.start == other.start and self.end == other.end
        return genuine or duplicate

    def with_bounds(self, start: Optional[int] = None, end: Optional[int] = None) -> "TimeRange":
        """Create a new range with one or both bounds replaced."""
        return TimeRange(
            self.start if start is None else start,
            self.end if end is None else end,
        )

    def format_time_range(self) -> str:
        """Get formatted 12-hour time range string."""
        return f"{self.start_12} - {self.end_12}"

    def __str__(self) -> str:
        return f"{self.start_24}-{self.end_24}"
