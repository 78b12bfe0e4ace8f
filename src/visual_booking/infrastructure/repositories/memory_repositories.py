"""In-memory repository implementations for testing and development."""

import itertools
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ...application.ports.repositories import (
    BookingDetails,
    BookingRepository,
    CreatedBooking,
    UnavailableRangeRepository,
)
from ...application.services.manual_booking_service import generate_booking_reference
from ...domain.entities.booking import Booking, BookingStatus
from ...domain.entities.schedule_slot import UnavailableRange
from ...domain.errors import BackendError
from ...domain.services.overlap import ranges_conflict
from ...domain.value_objects.auth import ClientContext
from ...domain.value_objects.date_key import month_of
from ...domain.value_objects.time_range import TimeRange


def _authorize(context: ClientContext) -> None:
    # Mirrors the backend answering 401 to a missing bearer token
    if not context.is_authenticated:
        raise BackendError("Unauthorized", 401)


class InMemoryBookingRepository(BookingRepository):
    """In-memory implementation of the booking endpoints.

    Behaves like the REST backend: month and booked-slot listings hold
    confirmed bookings only, public bookings start as pending and manual
    ones are confirmed straight away.
    """

    def __init__(self, bookings: Optional[List[Booking]] = None):
        self._bookings: Dict[int, Booking] = {}
        self._payments: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1
        for booking in bookings or []:
            self.add(booking)

    def add(self, booking: Booking) -> Booking:
        """Seed a booking, keeping the id counter ahead of it."""
        if booking.id is None:
            raise ValueError("Seeded bookings need an id")
        self._bookings[booking.id] = booking
        self._next_id = max(self._next_id, booking.id + 1)
        return booking

    def _get(self, booking_id: int) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise BackendError(f"Booking not found with ID: {booking_id}", 404)
        return booking

    async def find_by_month(self, context: ClientContext, year: int, month: int) -> List[Booking]:
        _authorize(context)
        return [
            b for b in self._bookings.values()
            if month_of(b.booking_date) == (year, month) and b.occupies_slot
        ]

    async def find_pending(self, context: ClientContext) -> List[Booking]:
        _authorize(context)
        return [b for b in self._bookings.values() if b.status is BookingStatus.PENDING]

    async def find_booked_slots(self) -> List[Booking]:
        return [b for b in self._bookings.values() if b.occupies_slot]

    async def get_details(self, context: ClientContext, booking_id: int) -> BookingDetails:
        _authorize(context)
        booking = self._get(booking_id)
        return BookingDetails(booking=booking, payment=self._payments.get(booking_id))

    async def approve(self, context: ClientContext, booking_id: int, admin_notes: str = "") -> str:
        _authorize(context)
        booking = self._get(booking_id)
        try:
            booking.approve(admin_notes)
        except ValueError as e:
            raise BackendError(str(e), 400) from e
        return "Booking approved successfully"

    async def reject(self, context: ClientContext, booking_id: int, reason: str) -> str:
        _authorize(context)
        booking = self._get(booking_id)
        try:
            booking.reject(reason)
        except ValueError as e:
            raise BackendError(str(e), 400) from e
        return "Booking rejected successfully"

    async def delete(self, context: ClientContext, booking_id: int) -> str:
        _authorize(context)
        self._get(booking_id)
        del self._bookings[booking_id]
        self._payments.pop(booking_id, None)
        return "Booking deleted successfully"

    async def update_time_range(self, context: ClientContext, booking_id: int, time_range: TimeRange) -> str:
        _authorize(context)
        booking = self._get(booking_id)
        overlapping = [
            other for other in self._bookings.values()
            if other.id != booking_id
            and other.occupies_slot
            and other.booking_date == booking.booking_date
            and ranges_conflict(time_range, other.time_range)
        ]
        if overlapping:
            raise BackendError("Cannot update booking time: overlaps with existing bookings", 409)
        try:
            booking.reschedule(time_range)
        except ValueError as e:
            raise BackendError(str(e), 400) from e
        return "Booking time updated successfully"

    async def create_manual(self, context: ClientContext, payload: Dict[str, Any]) -> CreatedBooking:
        _authorize(context)
        payload = dict(payload)
        payload.setdefault("guestEmail", "manual-booking@admin.com")
        return self._create(payload, BookingStatus.CONFIRMED, payment_status="COMPLETED")

    async def create(self, payload: Dict[str, Any]) -> CreatedBooking:
        return self._create(dict(payload), BookingStatus.PENDING, payment_status="PENDING")

    def _create(self, payload: Dict[str, Any], status: BookingStatus, payment_status: str) -> CreatedBooking:
        booking_id = self._next_id
        self._next_id += 1
        payload["bookingId"] = booking_id
        payload["bookingStatus"] = status.value
        payload["bookingReference"] = payload.get("bookingReference") or generate_booking_reference()
        payload["paymentId"] = booking_id
        payload["createdAt"] = datetime.now(timezone.utc).isoformat()
        try:
            booking = Booking.from_payload(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Error creating booking: {e}", 400) from e

        self._bookings[booking_id] = booking
        self._payments[booking_id] = {
            "paymentId": booking_id,
            "bookingId": booking_id,
            "amount": float(Decimal(str(payload.get("amount") or 0))),
            "paymentType": payload.get("paymentType"),
            "paymentMethod": payload.get("paymentMethod"),
            "gcashNumber": payload.get("gcashNumber"),
            "paymentStatus": payment_status,
        }
        return CreatedBooking(
            booking_id=booking_id,
            booking_reference=booking.booking_reference,
            data={"booking": booking.to_payload(), "payment": self._payments[booking_id]},
        )


class InMemoryUnavailableRangeRepository(UnavailableRangeRepository):
    """In-memory implementation of the unavailable-range endpoints."""

    def __init__(self):
        self._ranges: Dict[str, List[UnavailableRange]] = {}
        self._ids = itertools.count(1)

    async def find_by_date(self, context: ClientContext, date_key: str) -> List[UnavailableRange]:
        _authorize(context)
        return list(self._ranges.get(date_key, []))

    async def replace_for_date(self, context: ClientContext, date_key: str, ranges: List[TimeRange]) -> str:
        """Delete every range for the date, then insert the new set."""
        _authorize(context)
        self._ranges.pop(date_key, None)
        if ranges:
            self._ranges[date_key] = [
                UnavailableRange(date=date_key, time_range=r, id=next(self._ids)) for r in ranges
            ]
        return "Unavailable time ranges saved successfully"
