"""Pending booking approval queue."""

from typing import List

from ..ports.repositories import BookingDetails, BookingRepository
from ...domain.entities.booking import Booking
from ...domain.errors import ValidationError
from ...domain.value_objects.auth import ClientContext


class ApprovalService:
    """Application service for reviewing pending bookings.

    Pending bookings never occupy calendar time; approving one is what makes
    it block its slot.
    """

    def __init__(self, booking_repository: BookingRepository):
        self._booking_repository = booking_repository

    async def list_pending(self, context: ClientContext) -> List[Booking]:
        """Get bookings awaiting approval, oldest first."""
        context.require_token()
        bookings = await self._booking_repository.find_pending(context)
        return sorted(bookings, key=lambda b: (b.booking_date, b.time_range.start))

    async def approve(self, context: ClientContext, booking_id: int, admin_notes: str = "") -> str:
        """Approve a booking with optional notes."""
        context.require_token()
        return await self._booking_repository.approve(context, booking_id, admin_notes.strip())

    async def reject(self, context: ClientContext, booking_id: int, reason: str) -> str:
        """Reject a booking; a reason is required."""
        if not reason or not reason.strip():
            raise ValidationError({"reason": "Please provide a reason for rejection"})
        context.require_token()
        return await self._booking_repository.reject(context, booking_id, reason.strip())

    async def get_details(self, context: ClientContext, booking_id: int) -> BookingDetails:
        """Fetch booking and payment details on demand."""
        context.require_token()
        return await self._booking_repository.get_details(context, booking_id)
