"""Booking entity as sourced from the backend."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from ..value_objects.date_key import date_key, parse_date_key
from ..value_objects.time_range import TimeRange


class BookingStatus(Enum):
    """Booking status enumeration."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, value: Optional[str]) -> "BookingStatus":
        """Parse a backend status string.

        ``APPROVED`` is the backend's older name for ``CONFIRMED``.
        """
        normalized = (value or "PENDING").strip().upper()
        if normalized == "APPROVED":
            return cls.CONFIRMED
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown booking status: {value!r}") from None

    @property
    def occupies_slot(self) -> bool:
        """Only confirmed and completed bookings take up calendar time."""
        return self in (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)


class Booking:
    """Booking entity representing a photography or videography session."""

    def __init__(
        self,
        booking_id: Optional[int],
        booking_date: date,
        time_range: TimeRange,
        status: BookingStatus = BookingStatus.PENDING,
        booking_reference: Optional[str] = None,
        guest_name: str = "",
        guest_email: Optional[str] = None,
        guest_phone: Optional[str] = None,
        location: Optional[str] = None,
        category_name: Optional[str] = None,
        package_name: Optional[str] = None,
        package_price: Optional[Decimal] = None,
        special_requests: Optional[str] = None,
        payment_id: Optional[int] = None,
        admin_notes: Optional[str] = None,
        created_at: Optional[datetime] = None
    ):
        self._id = booking_id
        self._booking_date = booking_date
        self._time_range = time_range
        self._status = status
        self._reference = booking_reference
        self.guest_name = guest_name
        self.guest_email = guest_email
        self.guest_phone = guest_phone
        self.location = location
        self.category_name = category_name
        self.package_name = package_name
        self.package_price = package_price
        self.special_requests = special_requests
        self.payment_id = payment_id
        self.admin_notes = admin_notes
        self.created_at = created_at

    @property
    def id(self) -> Optional[int]:
        """Get backend booking ID."""
        return self._id

    @property
    def booking_reference(self) -> Optional[str]:
        """Get human-facing booking reference."""
        return self._reference

    @property
    def booking_date(self) -> date:
        return self._booking_date

    @property
    def date_key(self) -> str:
        return self._booking_date.isoformat()

    @property
    def time_range(self) -> TimeRange:
        return self._time_range

    @property
    def status(self) -> BookingStatus:
        return self._status

    @property
    def occupies_slot(self) -> bool:
        """Check if this booking blocks its time range on the calendar."""
        return self._status.occupies_slot

    def approve(self, admin_notes: str = "") -> None:
        """Confirm a pending booking."""
        if self._status != BookingStatus.PENDING:
            raise ValueError("Only pending bookings can be approved")
        self._status = BookingStatus.CONFIRMED
        self.admin_notes = admin_notes or None

    def reject(self, reason: str) -> None:
        """Reject a pending booking."""
        if self._status != BookingStatus.PENDING:
            raise ValueError("Only pending bookings can be rejected")
        self._status = BookingStatus.REJECTED
        self.admin_notes = reason

    def reschedule(self, time_range: TimeRange) -> None:
        """Move the booking within its day."""
        if self._status in (BookingStatus.REJECTED, BookingStatus.CANCELLED):
            raise ValueError("Rejected or cancelled bookings cannot be rescheduled")
        self._time_range = time_range

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Booking":
        """Build a booking from the backend's camelCase JSON."""
        price = payload.get("packagePrice")
        created_at = payload.get("createdAt")
        return cls(
            booking_id=payload.get("bookingId"),
            booking_date=parse_date_key(date_key(payload["bookingDate"])),
            time_range=TimeRange.parse(payload["bookingTimeStart"], payload["bookingTimeEnd"]),
            status=BookingStatus.parse(payload.get("bookingStatus")),
            booking_reference=payload.get("bookingReference"),
            guest_name=payload.get("guestName") or "",
            guest_email=payload.get("guestEmail"),
            guest_phone=payload.get("guestPhone"),
            location=payload.get("location"),
            category_name=payload.get("categoryName"),
            package_name=payload.get("packageName"),
            package_price=Decimal(str(price)) if price is not None else None,
            special_requests=payload.get("specialRequests"),
            payment_id=payload.get("paymentId"),
            admin_notes=payload.get("adminNotes"),
            created_at=datetime.fromisoformat(created_at) if isinstance(created_at, str) else None
        )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize back to the backend's JSON shape."""
        return {
            "bookingId": self._id,
            "bookingReference": self._reference,
            "bookingDate": self.date_key,
            "bookingTimeStart": self._time_range.start_24,
            "bookingTimeEnd": self._time_range.end_24,
            "bookingStatus": self._status.value,
            "guestName": self.guest_name,
            "guestEmail": self.guest_email,
            "guestPhone": self.guest_phone,
            "location": self.location,
            "categoryName": self.category_name,
            "packageName": self.package_name,
            "packagePrice": float(self.package_price) if self.package_price is not None else None,
            "specialRequests": self.special_requests,
            "paymentId": self.payment_id,
            "adminNotes": self.admin_notes,
        }

    def __eq__(self, other: object) -> bool:
        """Check equality based on booking ID."""
        if not isinstance(other, Booking):
            return False
        return self._id is not None and self._id == other._id

    def __hash__(self) -> int:
        """Hash based on booking ID."""
        return hash(self._id)

    def __str__(self) -> str:
        """String representation."""
        return f"Booking({self._id}, {self.date_key} {self._time_range}, {self._status.value})"
