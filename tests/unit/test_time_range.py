"""Unit tests for time conversions and the TimeRange value object."""

import pytest

from src.visual_booking.domain.value_objects.time_range import (
    TimeRange,
    format_12_hour,
    format_24_hour,
    to_12_hour,
    to_24_hour,
    to_minutes,
)


class TestToMinutes:
    """Test cases for parsing wall-clock times."""

    def test_parse_24_hour(self):
        """Test 24-hour strings."""
        assert to_minutes("00:00") == 0
        assert to_minutes("09:30") == 570
        assert to_minutes("23:59") == 1439

    def test_parse_12_hour(self):
        """Test 12-hour strings including the noon and midnight edges."""
        assert to_minutes("9:00 AM") == 540
        assert to_minutes("1:15 PM") == 795
        assert to_minutes("12:00 AM") == 0
        assert to_minutes("12:00 PM") == 720
        assert to_minutes("12:30 am") == 30

    def test_missing_minutes_default_to_zero(self):
        """Test that a bare hour reads as :00."""
        assert to_minutes("9") == 540
        assert to_minutes("9 PM") == 1260

    def test_seconds_are_ignored(self):
        """Test backend HH:MM:SS values."""
        assert to_minutes("13:00:00") == 780

    def test_invalid_values(self):
        """Test malformed and out-of-range values."""
        for value in ["", "abc", "24:00", "12:60", "13:00 PM", "0:30 AM", None]:
            with pytest.raises(ValueError):
                to_minutes(value)


class TestFormatting:
    """Test cases for formatting and conversion helpers."""

    def test_format_24_hour(self):
        """Test zero-padded output."""
        assert format_24_hour(0) == "00:00"
        assert format_24_hour(545) == "09:05"

    def test_format_12_hour(self):
        """Test unpadded hour with AM/PM."""
        assert format_12_hour(0) == "12:00 AM"
        assert format_12_hour(720) == "12:00 PM"
        assert format_12_hour(1290) == "9:30 PM"

    def test_format_rejects_out_of_range(self):
        """Test minutes outside one day."""
        with pytest.raises(ValueError):
            format_24_hour(1440)
        with pytest.raises(ValueError):
            format_12_hour(-1)

    def test_conversions_pass_through_target_form(self):
        """Test values already in the target form are unchanged."""
        assert to_24_hour("14:00") == "14:00"
        assert to_12_hour("2:00 PM") == "2:00 PM"

    def test_round_trip_24_hour(self):
        """Test to_24_hour(to_12_hour(t)) == t for every minute of the day."""
        for minutes in range(0, 24 * 60):
            value = format_24_hour(minutes)
            assert to_24_hour(to_12_hour(value)) == value

    def test_round_trip_12_hour(self):
        """Test to_12_hour(to_24_hour(u)) == u for every minute of the day."""
        for minutes in range(0, 24 * 60):
            value = format_12_hour(minutes)
            assert to_12_hour(to_24_hour(value)) == value


class TestTimeRange:
    """Test cases for TimeRange."""

    def test_creation(self):
        """Test basic range creation and views."""
        time_range = TimeRange.parse("09:00", "1:00 PM")

        assert time_range.start == 540
        assert time_range.end == 780
        assert time_range.duration_minutes == 240
        assert time_range.start_24 == "09:00"
        assert time_range.end_12 == "1:00 PM"
        assert str(time_range) == "09:00-13:00"
        assert time_range.format_time_range() == "9:00 AM - 1:00 PM"

    def test_start_must_precede_end(self):
        """Test inverted and empty ranges are rejected."""
        with pytest.raises(ValueError, match="Start time must be before end time"):
            TimeRange.parse("13:00", "09:00")
        with pytest.raises(ValueError):
            TimeRange(600, 600)

    def test_from_hours(self):
        """Test hour-aligned construction."""
        assert TimeRange.from_hours(8, 4) == TimeRange(480, 720)

    def test_minimum_duration(self):
        """Test the soft three-hour rule."""
        assert TimeRange.parse("09:00", "11:00").is_shorter_than(180) is True
        assert TimeRange.parse("09:00", "12:00").is_shorter_than(180) is False

    def test_with_bounds(self):
        """Test replacing one bound keeps the other."""
        time_range = TimeRange.parse("09:00", "13:00")

        assert time_range.with_bounds(end=900) == TimeRange(540, 900)
        assert time_range.with_bounds(start=600) == TimeRange(600, 780)
        with pytest.raises(ValueError):
            time_range.with_bounds(start=800)

    def test_immutability(self):
        """Test that ranges are frozen."""
        time_range = TimeRange(540, 780)
        with pytest.raises(AttributeError):
            time_range.start = 600
