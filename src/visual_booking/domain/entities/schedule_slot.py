"""Schedule slot entity for one calendar day in the admin editor."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..value_objects.date_key import date_key
from ..value_objects.time_range import TimeRange


class SlotStatus(Enum):
    """Slot status enumeration."""
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"
    BOOKING = "booking"

    @property
    def blocks(self) -> bool:
        """Available slots never act as obstacles for other ranges."""
        return self is not SlotStatus.AVAILABLE


@dataclass(frozen=True)
class UnavailableRange:
    """Admin-declared block with no associated booking."""
    date: str
    time_range: TimeRange
    id: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], fallback_date: Optional[str] = None) -> "UnavailableRange":
        """Build from the backend's ``{id, date, startTime, endTime}`` JSON."""
        return cls(
            date=date_key(payload.get("date") or fallback_date),
            time_range=TimeRange.parse(payload["startTime"], payload["endTime"]),
            id=payload.get("id"),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for the full-replacement submission."""
        return {
            "startTime": self.time_range.start_24,
            "endTime": self.time_range.end_24,
            "status": SlotStatus.UNAVAILABLE.value,
        }


class ScheduleSlot:
    """One editable time window on a calendar day.

    ``booking`` slots reference their booking by backend id only; details
    are fetched on demand.
    """

    def __init__(
        self,
        slot_id: int,
        time_range: TimeRange,
        status: SlotStatus = SlotStatus.AVAILABLE,
        booking_id: Optional[int] = None,
        server_id: Optional[int] = None
    ):
        if status is SlotStatus.BOOKING and booking_id is None:
            raise ValueError("Booking slots require a booking id")
        if status is not SlotStatus.BOOKING and booking_id is not None:
            raise ValueError("Only booking slots can reference a booking")
        self._id = slot_id
        self._time_range = time_range
        self._status = status
        self._booking_id = booking_id
        self._server_id = server_id if status is SlotStatus.UNAVAILABLE else None
        self.deletion_failed = False

    @property
    def id(self) -> int:
        """Get local slot ID."""
        return self._id

    @property
    def time_range(self) -> TimeRange:
        return self._time_range

    @property
    def status(self) -> SlotStatus:
        return self._status

    @property
    def booking_id(self) -> Optional[int]:
        return self._booking_id

    @property
    def server_id(self) -> Optional[int]:
        """Backend id of a loaded unavailable range, if any."""
        return self._server_id

    @property
    def is_booking(self) -> bool:
        return self._status is SlotStatus.BOOKING

    @property
    def blocks(self) -> bool:
        """Check if this slot is an obstacle for other ranges."""
        return self._status.blocks

    def toggle_status(self) -> bool:
        """Flip between available and unavailable.

        Booking slots are left untouched and ``False`` is returned.
        """
        if self._status is SlotStatus.BOOKING:
            return False
        if self._status is SlotStatus.AVAILABLE:
            self._status = SlotStatus.UNAVAILABLE
        else:
            self._status = SlotStatus.AVAILABLE
            self._server_id = None
        return True

    def resize(self, time_range: TimeRange) -> None:
        """Replace the slot's time range."""
        self._time_range = time_range

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for API responses."""
        return {
            "id": self._id,
            "start": self._time_range.start_24,
            "end": self._time_range.end_24,
            "start_display": self._time_range.start_12,
            "end_display": self._time_range.end_12,
            "status": self._status.value,
            "booking_id": self._booking_id,
            "server_id": self._server_id,
            "deletion_failed": self.deletion_failed,
        }

    def __str__(self) -> str:
        """String representation."""
        return f"ScheduleSlot({self._id}, {self._time_range}, {self._status.value})"
