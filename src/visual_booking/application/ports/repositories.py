"""Port interfaces for the REST backend (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.entities.booking import Booking
    from ...domain.entities.schedule_slot import UnavailableRange
    from ...domain.value_objects.auth import ClientContext
    from ...domain.value_objects.time_range import TimeRange


@dataclass
class BookingDetails:
    """Booking joined with its payment record, fetched on demand."""
    booking: "Booking"
    payment: Optional[Dict[str, Any]] = None
    payment_proof_url: Optional[str] = None


@dataclass
class CreatedBooking:
    """Identifiers returned by the backend after a booking is created."""
    booking_id: Optional[int]
    booking_reference: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)
    refresh_error: Optional[str] = None


class BookingRepository(ABC):
    """Port interface for the booking endpoints."""

    @abstractmethod
    async def find_by_month(self, context: "ClientContext", year: int, month: int) -> List["Booking"]:
        """Find the calendar bookings of a month."""
        raise NotImplementedError

    @abstractmethod
    async def find_pending(self, context: "ClientContext") -> List["Booking"]:
        """Find bookings awaiting approval."""
        raise NotImplementedError

    @abstractmethod
    async def find_booked_slots(self) -> List["Booking"]:
        """Find every booked slot (public, no credentials)."""
        raise NotImplementedError

    @abstractmethod
    async def get_details(self, context: "ClientContext", booking_id: int) -> BookingDetails:
        """Get a booking with its payment details."""
        raise NotImplementedError

    @abstractmethod
    async def approve(self, context: "ClientContext", booking_id: int, admin_notes: str = "") -> str:
        """Approve a pending booking."""
        raise NotImplementedError

    @abstractmethod
    async def reject(self, context: "ClientContext", booking_id: int, reason: str) -> str:
        """Reject a pending booking."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, context: "ClientContext", booking_id: int) -> str:
        """Delete a booking."""
        raise NotImplementedError

    @abstractmethod
    async def update_time_range(
        self, context: "ClientContext", booking_id: int, time_range: "TimeRange"
    ) -> str:
        """Move a booking to a new time range on the same day."""
        raise NotImplementedError

    @abstractmethod
    async def create_manual(self, context: "ClientContext", payload: Dict[str, Any]) -> CreatedBooking:
        """Create a booking on behalf of a customer."""
        raise NotImplementedError

    @abstractmethod
    async def create(self, payload: Dict[str, Any]) -> CreatedBooking:
        """Create a public booking request (starts as pending)."""
        raise NotImplementedError


class UnavailableRangeRepository(ABC):
    """Port interface for admin-declared unavailable ranges."""

    @abstractmethod
    async def find_by_date(self, context: "ClientContext", date_key: str) -> List["UnavailableRange"]:
        """Find unavailable ranges for a date."""
        raise NotImplementedError

    @abstractmethod
    async def replace_for_date(
        self, context: "ClientContext", date_key: str, ranges: List["TimeRange"]
    ) -> str:
        """Replace the whole set of unavailable ranges for a date."""
        raise NotImplementedError
