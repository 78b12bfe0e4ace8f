"""Overlap predicate shared by the wizard, the editor and manual bookings."""

from typing import Iterable, List, Optional

from ..entities.schedule_slot import ScheduleSlot
from ..value_objects.time_range import TimeRange


def ranges_conflict(candidate: TimeRange, other: TimeRange) -> bool:
    """Check whether two ranges conflict (adjacent ranges do not)."""
    return candidate.overlaps(other)


def find_conflicts(
    candidate: TimeRange,
    slots: Iterable[ScheduleSlot],
    exclude_id: Optional[int] = None
) -> List[ScheduleSlot]:
    """Get the blocking slots that a candidate range would overlap.

    ``exclude_id`` is the slot being edited so it never conflicts with
    itself. Available slots are ignored.
    """
    return [
        slot for slot in slots
        if slot.id != exclude_id and slot.blocks and ranges_conflict(candidate, slot.time_range)
    ]


def has_conflict(
    candidate: TimeRange,
    slots: Iterable[ScheduleSlot],
    exclude_id: Optional[int] = None
) -> bool:
    """Check if a candidate range overlaps any blocking slot."""
    return bool(find_conflicts(candidate, slots, exclude_id))


def conflicting_ranges(candidate: TimeRange, ranges: Iterable[TimeRange]) -> List[TimeRange]:
    """Get the plain ranges a candidate overlaps."""
    return [other for other in ranges if ranges_conflict(candidate, other)]
