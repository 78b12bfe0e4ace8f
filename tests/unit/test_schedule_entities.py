"""Unit tests for schedule slot and booking entities."""

import pytest
from datetime import date
from decimal import Decimal

from src.visual_booking.domain.entities.booking import Booking, BookingStatus
from src.visual_booking.domain.entities.schedule_slot import ScheduleSlot, SlotStatus, UnavailableRange
from src.visual_booking.domain.value_objects.time_range import TimeRange


class TestScheduleSlot:
    """Test cases for the ScheduleSlot state machine."""

    def test_toggle_available_and_unavailable(self):
        """Test the available <-> unavailable cycle."""
        slot = ScheduleSlot(1, TimeRange(540, 780))

        assert slot.toggle_status() is True
        assert slot.status is SlotStatus.UNAVAILABLE
        assert slot.blocks is True
        assert slot.toggle_status() is True
        assert slot.status is SlotStatus.AVAILABLE
        assert slot.blocks is False

    def test_toggle_on_booking_slot_is_noop(self):
        """Test a booking slot rejects a direct status toggle and stays unchanged."""
        slot = ScheduleSlot(1, TimeRange(540, 780), SlotStatus.BOOKING, booking_id=7)

        assert slot.toggle_status() is False
        assert slot.status is SlotStatus.BOOKING
        assert slot.booking_id == 7

    def test_booking_id_rules(self):
        """Test booking slots need a booking id and only they may carry one."""
        with pytest.raises(ValueError):
            ScheduleSlot(1, TimeRange(540, 780), SlotStatus.BOOKING)
        with pytest.raises(ValueError):
            ScheduleSlot(1, TimeRange(540, 780), SlotStatus.UNAVAILABLE, booking_id=7)

    def test_back_to_available_drops_server_id(self):
        """Test a loaded unavailable range forgets its backend id when freed."""
        slot = ScheduleSlot(1, TimeRange(540, 780), SlotStatus.UNAVAILABLE, server_id=55)
        assert slot.server_id == 55

        slot.toggle_status()

        assert slot.server_id is None

    def test_to_dict(self):
        """Test API serialization."""
        slot = ScheduleSlot(3, TimeRange(540, 780), SlotStatus.BOOKING, booking_id=7)

        data = slot.to_dict()

        assert data["start"] == "09:00"
        assert data["end_display"] == "1:00 PM"
        assert data["status"] == "booking"
        assert data["deletion_failed"] is False


class TestUnavailableRange:
    """Test cases for UnavailableRange."""

    def test_from_payload_uses_fallback_date(self):
        """Test ranges without a date take the requested one."""
        item = UnavailableRange.from_payload({"id": 4, "startTime": "15:00:00", "endTime": "17:00"}, "2025-04-18")

        assert item.date == "2025-04-18"
        assert item.time_range == TimeRange(900, 1020)
        assert item.id == 4

    def test_to_payload(self):
        """Test the replacement submission shape."""
        item = UnavailableRange("2025-04-18", TimeRange(900, 1020))

        assert item.to_payload() == {"startTime": "15:00", "endTime": "17:00", "status": "unavailable"}


class TestBooking:
    """Test cases for the Booking entity."""

    def sample_payload(self, **overrides):
        payload = {
            "bookingId": 101,
            "bookingReference": "BKLQ3K9ZQ1",
            "bookingDate": "2025-04-18",
            "bookingTimeStart": "09:00:00",
            "bookingTimeEnd": "13:00:00",
            "bookingStatus": "CONFIRMED",
            "guestName": "Maria Santos",
            "packageName": "Pre-Photoshoot",
            "packagePrice": 3500,
        }
        payload.update(overrides)
        return payload

    def test_from_payload(self):
        """Test parsing the backend's camelCase JSON."""
        booking = Booking.from_payload(self.sample_payload())

        assert booking.id == 101
        assert booking.booking_date == date(2025, 4, 18)
        assert booking.date_key == "2025-04-18"
        assert booking.time_range == TimeRange(540, 780)
        assert booking.status is BookingStatus.CONFIRMED
        assert booking.package_price == Decimal("3500")
        assert booking.occupies_slot is True

    def test_status_parsing(self):
        """Test legacy and missing statuses."""
        assert BookingStatus.parse("APPROVED") is BookingStatus.CONFIRMED
        assert BookingStatus.parse(None) is BookingStatus.PENDING
        assert BookingStatus.parse("cancelled") is BookingStatus.CANCELLED
        with pytest.raises(ValueError):
            BookingStatus.parse("LOST")

    def test_only_confirmed_and_completed_occupy_slots(self):
        """Test which statuses block calendar time."""
        blocking = {s for s in BookingStatus if s.occupies_slot}
        assert blocking == {BookingStatus.CONFIRMED, BookingStatus.COMPLETED}

    def test_approve_and_reject(self):
        """Test approval transitions."""
        booking = Booking.from_payload(self.sample_payload(bookingStatus="PENDING"))
        booking.approve("Paid in full")
        assert booking.status is BookingStatus.CONFIRMED
        assert booking.admin_notes == "Paid in full"
        with pytest.raises(ValueError):
            booking.reject("too late")

    def test_payload_round_trip_keeps_identity(self):
        """Test to_payload feeds back into from_payload."""
        booking = Booking.from_payload(self.sample_payload())

        again = Booking.from_payload(booking.to_payload())

        assert again == booking
        assert again.time_range == booking.time_range
        assert again.to_payload()["bookingTimeStart"] == "09:00"
