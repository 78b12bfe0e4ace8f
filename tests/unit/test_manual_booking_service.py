"""Unit tests for manual booking creation."""

import re

import pytest
from unittest.mock import AsyncMock, Mock

from src.visual_booking.application.ports.repositories import BookingRepository, CreatedBooking
from src.visual_booking.application.services.manual_booking_service import (
    ManualBookingCreator,
    ManualBookingForm,
    generate_booking_reference,
)
from src.visual_booking.domain.entities.schedule_slot import ScheduleSlot, SlotStatus
from src.visual_booking.domain.errors import BackendError, ConflictError, NotAuthenticatedError, ValidationError
from src.visual_booking.domain.value_objects.auth import ClientContext
from src.visual_booking.domain.value_objects.time_range import TimeRange


CONTEXT = ClientContext(token="admin-token")


def make_form(**overrides):
    values = {
        "package": "Pre-Photoshoot",
        "full_name": " Maria Santos ",
        "phone_number": "09171234567",
        "location": "Quezon City",
        "payment_type": "Down Payment",
        "payment_mode": "Gcash",
        "account_number": "09170000000",
        "amount": "1750",
    }
    values.update(overrides)
    return ManualBookingForm(**values)


class TestBookingReference:
    """Test cases for reference generation."""

    def test_format(self):
        """Test BKLQ followed by six upper-case base-36 characters."""
        assert re.fullmatch(r"BKLQ[0-9A-Z]{6}", generate_booking_reference())

    def test_uses_last_six_base36_digits(self):
        """Test the reference is derived from the timestamp."""
        assert generate_booking_reference(36 ** 6 + 35) == "BKLQ00000Z"


class TestManualBookingForm:
    """Test cases for form validation."""

    def test_valid_form(self):
        """Test a complete form has no errors."""
        assert make_form().validate() == {}

    def test_required_fields(self):
        """Test missing name, phone, location, package and amount."""
        errors = make_form(full_name="", phone_number=" ", location="", package="", amount=None).validate()

        assert set(errors) == {"full_name", "phone_number", "location", "package", "amount"}

    def test_gcash_requires_account_number(self):
        """Test the Gcash account number rule."""
        assert "account_number" in make_form(account_number="").validate()
        assert make_form(payment_mode="Cash", account_number="").validate() == {}

    def test_amount_must_be_positive_number(self):
        """Test amount parsing."""
        assert "amount" in make_form(amount="abc").validate()
        assert "amount" in make_form(amount="0").validate()

    def test_unknown_package_for_category(self):
        """Test packages are looked up within the chosen category."""
        errors = make_form(category="Videography").validate()

        assert "package" in errors


class TestManualBookingCreator:
    """Test cases for ManualBookingCreator."""

    def setup_mocks(self):
        """Setup a booking repository mock."""
        repository = Mock(spec=BookingRepository)
        repository.create_manual = AsyncMock(
            return_value=CreatedBooking(booking_id=501, booking_reference="BKLQ00000Z")
        )
        return repository

    def test_build_payload_maps_backend_fields(self):
        """Test 24-hour times, enums and trimmed fields."""
        creator = ManualBookingCreator(self.setup_mocks())

        payload = creator.build_payload(
            make_form(), "2025-04-18", TimeRange.parse("1:00 PM", "5:00 PM"), booking_reference="BKLQ00000Z"
        )

        assert payload["bookingDate"] == "2025-04-18"
        assert payload["bookingTimeStart"] == "13:00"
        assert payload["bookingTimeEnd"] == "17:00"
        assert payload["guestName"] == "Maria Santos"
        assert payload["paymentType"] == "DOWNPAYMENT"
        assert payload["paymentMethod"] == "GCASH"
        assert payload["gcashNumber"] == "09170000000"
        assert payload["amount"] == 1750.0
        assert payload["packagePrice"] == 3500.0
        assert payload["bookingReference"] == "BKLQ00000Z"

    def test_cash_payment_has_no_gcash_number(self):
        """Test non-Gcash payments."""
        creator = ManualBookingCreator(self.setup_mocks())

        payload = creator.build_payload(
            make_form(payment_mode="Cash", payment_type="Full Payment"),
            "2025-04-18", TimeRange.parse("13:00", "17:00"),
        )

        assert payload["gcashNumber"] is None
        assert payload["paymentType"] == "FULL"

    @pytest.mark.asyncio
    async def test_submit_creates_booking_and_refreshes(self):
        """Test the happy path calls the repository and the refresh callback."""
        repository = self.setup_mocks()
        creator = ManualBookingCreator(repository)
        on_created = AsyncMock()

        created = await creator.submit(
            CONTEXT, make_form(), "2025-04-18", TimeRange.parse("13:00", "17:00"), on_created=on_created
        )

        assert created.booking_id == 501
        repository.create_manual.assert_awaited_once()
        context, payload = repository.create_manual.await_args.args
        assert context is CONTEXT
        assert payload["bookingTimeStart"] == "13:00"
        on_created.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_refresh_still_returns_created_booking(self):
        """Test a refresh error after creation is reported, not raised."""
        repository = self.setup_mocks()
        creator = ManualBookingCreator(repository)
        on_created = AsyncMock(side_effect=BackendError("Gateway timeout", 504))

        created = await creator.submit(
            CONTEXT, make_form(), "2025-04-18", TimeRange.parse("13:00", "17:00"), on_created=on_created
        )

        assert created.booking_id == 501
        assert created.booking_reference == "BKLQ00000Z"
        assert created.refresh_error == "Gateway timeout"
        repository.create_manual.assert_awaited_once()
        on_created.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_submit_validates_before_any_call(self):
        """Test invalid forms never reach the backend."""
        repository = self.setup_mocks()
        creator = ManualBookingCreator(repository)

        with pytest.raises(ValidationError) as exc_info:
            await creator.submit(CONTEXT, make_form(full_name=""), "2025-04-18", TimeRange.parse("13:00", "17:00"))

        assert "full_name" in exc_info.value.errors
        repository.create_manual.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_requires_token(self):
        """Test the missing-token short circuit."""
        repository = self.setup_mocks()

        with pytest.raises(NotAuthenticatedError):
            await ManualBookingCreator(repository).submit(
                ClientContext(), make_form(), "2025-04-18", TimeRange.parse("13:00", "17:00")
            )

        repository.create_manual.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_conflict_is_rechecked_and_can_be_confirmed(self):
        """Test the submit-time conflict check and its override."""
        repository = self.setup_mocks()
        creator = ManualBookingCreator(repository)
        slots = [
            ScheduleSlot(1, TimeRange.parse("09:00", "13:00"), SlotStatus.BOOKING, booking_id=101),
            ScheduleSlot(2, TimeRange.parse("06:00", "22:00"), SlotStatus.AVAILABLE),
        ]

        with pytest.raises(ConflictError) as exc_info:
            await creator.submit(CONTEXT, make_form(), "2025-04-18", TimeRange.parse("12:00", "16:00"), slots)

        assert [s.id for s in exc_info.value.conflicts] == [1]
        repository.create_manual.assert_not_awaited()

        await creator.submit(
            CONTEXT, make_form(), "2025-04-18", TimeRange.parse("12:00", "16:00"), slots, force=True
        )
        repository.create_manual.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_adjacent_range_is_not_a_conflict(self):
        """Test a range starting when a booking ends."""
        repository = self.setup_mocks()
        slots = [ScheduleSlot(1, TimeRange.parse("09:00", "13:00"), SlotStatus.BOOKING, booking_id=101)]

        await ManualBookingCreator(repository).submit(
            CONTEXT, make_form(), "2025-04-18", TimeRange.parse("13:00", "17:00"), slots
        )

        repository.create_manual.assert_awaited_once()
