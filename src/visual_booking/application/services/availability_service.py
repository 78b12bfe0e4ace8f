"""Availability resolver for the public booking wizard."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..ports.repositories import BookingRepository
from ...domain.entities.booking import Booking
from ...domain.errors import AvailabilityUnavailableError, BackendError, ValidationError
from ...domain.services.overlap import conflicting_ranges
from ...domain.value_objects.date_key import DateLike, date_key
from ...domain.value_objects.time_range import TimeRange


logger = logging.getLogger(__name__)

ALREADY_BOOKED = "Already Booked"


@dataclass(frozen=True)
class SlotProposal:
    """A candidate range for a date, flagged when it is already taken."""
    date: str
    time_range: TimeRange
    is_conflicting: bool = False

    @property
    def label(self) -> Optional[str]:
        return ALREADY_BOOKED if self.is_conflicting else None

    def to_dict(self) -> dict:
        """Serialize for API responses."""
        return {
            "date": self.date,
            "start_time": self.time_range.start_24,
            "end_time": self.time_range.end_24,
            "formatted_start_time": self.time_range.start_12,
            "formatted_end_time": self.time_range.end_12,
            "is_conflicting": self.is_conflicting,
            "label": self.label,
        }


class CandidateRangeGenerator:
    """Generates hour-aligned candidate ranges for a package duration."""

    def __init__(self, first_start_hour: int = 0, last_end_hour: int = 23):
        if not 0 <= first_start_hour < last_end_hour <= 23:
            raise ValueError("Candidate window must lie within one day")
        self.first_start_hour = first_start_hour
        self.last_end_hour = last_end_hour

    def generate(self, duration_hours: int) -> List[TimeRange]:
        """Generate every ``[h, h + D)`` from the first start to ``last_end - D``."""
        if duration_hours < 1:
            raise ValidationError({"duration_hours": "Duration must be at least 1 hour"})
        last_start = self.last_end_hour - duration_hours
        return [
            TimeRange.from_hours(hour, duration_hours)
            for hour in range(self.first_start_hour, last_start + 1)
        ]


class AvailabilityResolver:
    """Resolves bookable ranges against the backend's booked slots.

    Booked slots are fetched once for every date and filtered locally. If the
    fetch fails the resolver stays in an errored state and refuses to present
    any candidate as free until :meth:`load` succeeds.
    """

    def __init__(
        self,
        booking_repository: BookingRepository,
        generator: Optional[CandidateRangeGenerator] = None
    ):
        self._booking_repository = booking_repository
        self._generator = generator or CandidateRangeGenerator()
        self._booked: Optional[Dict[str, List[TimeRange]]] = None
        self._load_error: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        """Check if booked-slot data loaded successfully."""
        return self._booked is not None

    @property
    def load_error(self) -> Optional[str]:
        return self._load_error

    async def load(self) -> None:
        """Fetch booked slots; on failure enter the errored state and raise."""
        try:
            bookings = await self._booking_repository.find_booked_slots()
        except BackendError as e:
            self._booked = None
            self._load_error = e.message
            logger.warning("Could not load booked slots", extra={"error": e.message})
            raise AvailabilityUnavailableError(
                f"Booking availability could not be loaded: {e.message}"
            ) from e

        self._booked = self._index(bookings)
        self._load_error = None
        logger.info("Loaded booked slots", extra={"dates": len(self._booked)})

    @staticmethod
    def _index(bookings: List[Booking]) -> Dict[str, List[TimeRange]]:
        booked: Dict[str, List[TimeRange]] = {}
        for booking in bookings:
            if booking.occupies_slot:
                booked.setdefault(booking.date_key, []).append(booking.time_range)
        return booked

    def _require_ready(self) -> Dict[str, List[TimeRange]]:
        if self._booked is None:
            detail = self._load_error or "booked slots have not been loaded"
            raise AvailabilityUnavailableError(f"Availability is unknown: {detail}")
        return self._booked

    def booked_ranges(self, day: DateLike) -> List[TimeRange]:
        """Get the occupied ranges for a date."""
        return list(self._require_ready().get(date_key(day), []))

    def check(self, day: DateLike, time_range: TimeRange) -> SlotProposal:
        """Flag a single range against the date's booked ranges."""
        key = date_key(day)
        conflicts = conflicting_ranges(time_range, self.booked_ranges(key))
        return SlotProposal(date=key, time_range=time_range, is_conflicting=bool(conflicts))

    def resolve(self, day: DateLike, duration_hours: int) -> List[SlotProposal]:
        """Get every candidate for the date, conflicting ones included and flagged."""
        key = date_key(day)
        booked = self.booked_ranges(key)
        return [
            SlotProposal(
                date=key,
                time_range=candidate,
                is_conflicting=bool(conflicting_ranges(candidate, booked)),
            )
            for candidate in self._generator.generate(duration_hours)
        ]
