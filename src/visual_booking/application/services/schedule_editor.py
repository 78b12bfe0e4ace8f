"""Admin schedule editor: load a day, stage edits, commit on save.

The editor follows a "read fully, mutate locally, write fully" discipline.
There is no versioning on the backend, so two admins saving the same date
race and the last save to complete wins.
"""

import inspect
import itertools
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, Union

from ..ports.repositories import BookingDetails, BookingRepository, UnavailableRangeRepository
from ...domain.entities.booking import Booking
from ...domain.entities.schedule_slot import ScheduleSlot, SlotStatus
from ...domain.errors import BackendError, ConflictError, EditorStateError, ValidationError
from ...domain.services.overlap import find_conflicts
from ...domain.value_objects.auth import ClientContext
from ...domain.value_objects.date_key import DateLike, date_key, month_of
from ...domain.value_objects.time_range import (
    DEFAULT_MINIMUM_DURATION_MINUTES,
    TimeRange,
    format_12_hour,
    format_24_hour,
    to_minutes,
)


logger = logging.getLogger(__name__)

DEFAULT_WINDOW = TimeRange(6 * 60, 22 * 60)


@dataclass
class BookingTimeEdit:
    """Queued time-range change for one booking."""
    booking_id: int
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    def to_payload(self, current: TimeRange) -> Dict[str, object]:
        """Build the update body, filling untouched bounds from ``current``."""
        return {
            "bookingId": self.booking_id,
            "startTime": self.start_time or current.start_24,
            "endTime": self.end_time or current.end_24,
        }


@dataclass
class StepFailure:
    """One failed call during save."""
    step: str
    message: str
    booking_id: Optional[int] = None


@dataclass
class SaveReport:
    """Outcome of a save, step by step."""
    date: str
    edits_applied: List[int] = field(default_factory=list)
    deletions_applied: List[int] = field(default_factory=list)
    failures: List[StepFailure] = field(default_factory=list)
    unavailable_saved: bool = False
    unavailable_count: int = 0
    aborted: bool = False
    refreshed: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failures and not self.aborted

    def summary(self) -> str:
        """Human-readable summary for the operator."""
        parts = [
            f"{len(self.edits_applied)} booking time change(s) saved",
            f"{len(self.deletions_applied)} booking(s) deleted",
        ]
        if self.unavailable_saved:
            parts.append(f"{self.unavailable_count} unavailable range(s) saved")
        text = ", ".join(parts)
        if self.aborted:
            text += "; save stopped by operator"
        if self.failures:
            text += f"; {len(self.failures)} step(s) failed: " + "; ".join(
                f.message for f in self.failures
            )
        return text


@dataclass
class SlotChange:
    """A mutated slot plus any soft warnings raised by the change."""
    slot: ScheduleSlot
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TimeOption:
    """One entry of a start/end time dropdown."""
    value: str
    label: str
    disabled: bool = False
    selected: bool = False


ContinuePrompt = Callable[[StepFailure], Union[bool, Awaitable[bool]]]


class ScheduleEditor:
    """Editable slot list for one calendar day."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        unavailable_repository: UnavailableRangeRepository,
        context: ClientContext,
        default_window: TimeRange = DEFAULT_WINDOW,
        minimum_duration_minutes: int = DEFAULT_MINIMUM_DURATION_MINUTES
    ):
        self._booking_repository = booking_repository
        self._unavailable_repository = unavailable_repository
        self.context = context
        self.default_window = default_window
        self.minimum_duration_minutes = minimum_duration_minutes

        self._date: Optional[str] = None
        self._slots: List[ScheduleSlot] = []
        self._bookings: Dict[int, Booking] = {}
        self._edits: Dict[int, BookingTimeEdit] = {}
        self._pending_deletions: Dict[int, ScheduleSlot] = {}
        self._flag_on_reload: set = set()
        self._ids = itertools.count(1)
        self._loaded = False
        self._saving = False
        self._load_error: Optional[str] = None
        self._stale = False

    # State

    @property
    def date(self) -> Optional[str]:
        return self._date

    @property
    def slots(self) -> List[ScheduleSlot]:
        """Current slots, ordered by start time."""
        return sorted(self._slots, key=lambda s: (s.time_range.start, s.time_range.end, s.id))

    @property
    def edit_queue(self) -> List[BookingTimeEdit]:
        return list(self._edits.values())

    @property
    def pending_deletions(self) -> List[int]:
        return list(self._pending_deletions)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def load_error(self) -> Optional[str]:
        return self._load_error

    @property
    def is_stale(self) -> bool:
        """True after a stopped save left the backend partly updated."""
        return self._stale

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._edits or self._pending_deletions)

    def get_slot(self, slot_id: int) -> ScheduleSlot:
        """Find a slot by its local id."""
        for slot in self._slots:
            if slot.id == slot_id:
                return slot
        raise EditorStateError(f"Unknown slot: {slot_id}")

    # Loading

    async def load(self, day: DateLike) -> List[ScheduleSlot]:
        """Rebuild the slot list for a date from the backend.

        A failed load leaves the editor blocked until a retry succeeds.
        """
        self.context.require_token()
        key = date_key(day)
        self._reset(key)

        try:
            year, month = month_of(key)
            month_bookings = await self._booking_repository.find_by_month(self.context, year, month)
            day_bookings = sorted(
                (b for b in month_bookings if b.date_key == key and b.occupies_slot),
                key=lambda b: (b.time_range.start, b.time_range.end),
            )
            for booking in day_bookings:
                self._bookings[booking.id] = booking
                self._slots.append(self._new_slot(booking.time_range, SlotStatus.BOOKING, booking_id=booking.id))

            if not day_bookings:
                self._slots.append(self._new_slot(self.default_window))

            unavailable = await self._unavailable_repository.find_by_date(self.context, key)
        except BackendError as e:
            self._slots = []
            self._bookings = {}
            self._load_error = e.message
            logger.error(f"Failed to load schedule for {key}: {e.message}", extra={"date_key": key})
            raise

        for item in unavailable:
            if any(s.time_range == item.time_range for s in self._slots):
                logger.debug(f"Skipping duplicate unavailable range {item.time_range} on {key}")
                continue
            self._slots.append(self._new_slot(item.time_range, SlotStatus.UNAVAILABLE, server_id=item.id))

        for slot in self._slots:
            if slot.booking_id in self._flag_on_reload:
                slot.deletion_failed = True
        self._flag_on_reload = set()

        self._loaded = True
        logger.info(
            f"Loaded schedule for {key}",
            extra={"date_key": key, "bookings": len(day_bookings), "slots": len(self._slots)},
        )
        return self.slots

    async def reload(self) -> List[ScheduleSlot]:
        """Re-fetch the current date, discarding unsaved local changes."""
        if self._date is None:
            raise EditorStateError("No date has been loaded")
        return await self.load(self._date)

    def _reset(self, key: str) -> None:
        self._date = key
        self._slots = []
        self._bookings = {}
        self._edits = {}
        self._pending_deletions = {}
        self._ids = itertools.count(1)
        self._loaded = False
        self._load_error = None
        self._stale = False

    def _new_slot(self, time_range: TimeRange, status: SlotStatus = SlotStatus.AVAILABLE,
                  booking_id: Optional[int] = None, server_id: Optional[int] = None) -> ScheduleSlot:
        return ScheduleSlot(next(self._ids), time_range, status, booking_id=booking_id, server_id=server_id)

    def _require_editable(self) -> None:
        if not self._loaded:
            raise EditorStateError(self._load_error or "Schedule is not loaded")
        if self._saving:
            raise EditorStateError("A save is in progress")

    # Conflicts

    def find_conflicts(self, candidate: TimeRange, exclude_id: Optional[int] = None) -> List[ScheduleSlot]:
        """Get blocking slots a candidate range would overlap."""
        return find_conflicts(candidate, self._slots, exclude_id)

    def unresolved_conflicts(self) -> List[Tuple[ScheduleSlot, ScheduleSlot]]:
        """Get overlapping pairs involving an unavailable slot.

        Available slots are never persisted, so only unavailable ranges can
        leave the saved schedule inconsistent.
        """
        pairs = []
        seen = set()
        for slot in self._slots:
            if slot.status is not SlotStatus.UNAVAILABLE:
                continue
            for other in self.find_conflicts(slot.time_range, exclude_id=slot.id):
                key = frozenset((slot.id, other.id))
                if key not in seen:
                    seen.add(key)
                    pairs.append((slot, other))
        return pairs

    @property
    def can_save(self) -> bool:
        """Save is allowed once loaded, while idle and free of conflicts."""
        return self._loaded and not self._saving and not self.unresolved_conflicts()

    def _guard_conflicts(self, candidate: TimeRange, exclude_id: Optional[int], force: bool, action: str) -> None:
        conflicts = self.find_conflicts(candidate, exclude_id)
        if not conflicts:
            return
        ranges = ", ".join(str(s.time_range) for s in conflicts)
        if not force:
            raise ConflictError(f"{action} {candidate} overlaps {ranges}", conflicts)
        logger.warning(
            f"Conflict overridden by operator: {action} {candidate} overlaps {ranges}",
            extra={"business_rule": "no_overlap", "date_key": self._date},
        )

    def _duration_warnings(self, time_range: TimeRange) -> List[str]:
        if time_range.is_shorter_than(self.minimum_duration_minutes):
            return [
                f"{time_range} is shorter than the recommended "
                f"{self.minimum_duration_minutes // 60} hours"
            ]
        return []

    # Mutations

    def find_default_range(self) -> Optional[TimeRange]:
        """Find a free range for a new slot.

        Tries the default window, then the first hour-aligned range of the
        minimum duration inside it, then anywhere in the day.
        """
        if not self.find_conflicts(self.default_window):
            return self.default_window
        length = self.minimum_duration_minutes
        windows = [
            (self.default_window.start, self.default_window.end),
            (0, 23 * 60 + 59),
        ]
        for first, last in windows:
            for start in range(first - first % 60, last - length + 1, 60):
                if start < first:
                    continue
                candidate = TimeRange(start, start + length)
                if not self.find_conflicts(candidate):
                    return candidate
        return None

    def add_slot(self, time_range: Optional[TimeRange] = None, force: bool = False) -> SlotChange:
        """Add an available slot, defaulting to the first free window."""
        self._require_editable()
        if time_range is None:
            time_range = self.find_default_range()
            if time_range is None:
                raise ConflictError("No free window is left on this date")
        self._guard_conflicts(time_range, None, force, "New range")

        slot = self._new_slot(time_range)
        self._slots.append(slot)
        return SlotChange(slot, self._duration_warnings(time_range))

    def resize_slot(self, slot_id: int, start: Optional[str] = None, end: Optional[str] = None,
                    force: bool = False) -> SlotChange:
        """Change a slot's start and/or end time.

        Booking slots are changed locally and queued for the backend; other
        slots are only changed locally.
        """
        self._require_editable()
        slot = self.get_slot(slot_id)
        try:
            new_range = slot.time_range.with_bounds(
                to_minutes(start) if start is not None else None,
                to_minutes(end) if end is not None else None,
            )
        except ValueError as e:
            raise ValidationError({"time_range": str(e)}) from e

        self._guard_conflicts(new_range, slot.id, force, "Range")
        slot.resize(new_range)

        if slot.is_booking:
            entry = self._edits.setdefault(slot.booking_id, BookingTimeEdit(slot.booking_id))
            if start is not None:
                entry.start_time = new_range.start_24
            if end is not None:
                entry.end_time = new_range.end_24
        return SlotChange(slot, self._duration_warnings(new_range))

    def toggle_slot(self, slot_id: int, force: bool = False) -> SlotChange:
        """Flip a slot between available and unavailable."""
        self._require_editable()
        slot = self.get_slot(slot_id)
        if slot.is_booking:
            raise EditorStateError("Booked slots cannot be marked available or unavailable")
        if slot.status is SlotStatus.AVAILABLE:
            self._guard_conflicts(slot.time_range, slot.id, force, "Unavailable range")
        slot.toggle_status()
        return SlotChange(slot)

    def delete_slot(self, slot_id: int) -> ScheduleSlot:
        """Remove an available or unavailable slot locally."""
        self._require_editable()
        slot = self.get_slot(slot_id)
        if slot.is_booking:
            raise EditorStateError("Booked slots must be removed with delete_booking")
        self._slots.remove(slot)
        return slot

    def delete_booking(self, slot_id: int) -> ScheduleSlot:
        """Stage a booking deletion and hide its slot until save."""
        self._require_editable()
        slot = self.get_slot(slot_id)
        if not slot.is_booking or slot.booking_id is None:
            raise EditorStateError("Only booked slots can be deleted as bookings")
        self._pending_deletions[slot.booking_id] = slot
        self._edits.pop(slot.booking_id, None)
        self._slots.remove(slot)
        logger.info(f"Staged deletion of booking {slot.booking_id}", extra={"date_key": self._date})
        return slot

    def time_options(self, slot_id: int, bound: str) -> List[TimeOption]:
        """Hourly dropdown options for a slot's ``start`` or ``end``."""
        if bound not in ("start", "end"):
            raise ValidationError({"bound": "Must be 'start' or 'end'"})
        slot = self.get_slot(slot_id)
        current = slot.time_range.start if bound == "start" else slot.time_range.end
        options = []
        for hour in range(24):
            minutes = hour * 60
            try:
                if bound == "start":
                    candidate = slot.time_range.with_bounds(start=minutes)
                else:
                    candidate = slot.time_range.with_bounds(end=minutes)
                disabled = bool(self.find_conflicts(candidate, slot.id))
            except ValueError:
                disabled = True
            options.append(TimeOption(
                value=format_24_hour(minutes),
                label=format_12_hour(minutes),
                disabled=disabled,
                selected=minutes == current,
            ))
        return options

    async def booking_details(self, slot_id: int) -> BookingDetails:
        """Fetch full booking and payment details for a booked slot."""
        slot = self.get_slot(slot_id)
        if slot.booking_id is None:
            raise EditorStateError("Slot has no booking")
        return await self._booking_repository.get_details(self.context, slot.booking_id)

    # Save

    async def save(self, confirm_continue: Optional[ContinuePrompt] = None) -> SaveReport:
        """Commit staged changes in order: time edits, deletions, unavailable set.

        Steps run one after another. A failed time edit asks
        ``confirm_continue`` whether to go on (continuing when no prompt is
        given); failed deletions are reported and skipped. The date is
        re-fetched afterwards as the authoritative state.

        Stopping after a failed edit skips the reload. Edits already applied
        leave the queue, the rest stay staged, and the editor is marked stale
        until the next load.
        """
        self.context.require_token()
        self._require_editable()
        conflicts = self.unresolved_conflicts()
        if conflicts:
            raise ConflictError(
                "Resolve overlapping unavailable ranges before saving",
                [other for _, other in conflicts],
            )

        key = self._date
        report = SaveReport(date=key)
        self._saving = True
        try:
            for edit in list(self._edits.values()):
                slot = self._slot_for_booking(edit.booking_id)
                current = slot.time_range if slot else self._bookings[edit.booking_id].time_range
                payload = edit.to_payload(current)
                target = TimeRange.parse(payload["startTime"], payload["endTime"])
                try:
                    await self._booking_repository.update_time_range(self.context, edit.booking_id, target)
                    report.edits_applied.append(edit.booking_id)
                    del self._edits[edit.booking_id]
                except BackendError as e:
                    failure = StepFailure("edit", f"Booking {edit.booking_id}: {e.message}", edit.booking_id)
                    report.failures.append(failure)
                    logger.warning(
                        f"Time range update failed for booking {edit.booking_id}: {e.message}",
                        extra={"date_key": key, "booking_id": edit.booking_id},
                    )
                    if not await self._ask(confirm_continue, failure):
                        report.aborted = True
                        self._stale = True
                        logger.info(
                            f"Save for {key} stopped by operator; {len(self._edits)} edit(s) still queued",
                            extra={"date_key": key},
                        )
                        return report

            for booking_id, slot in list(self._pending_deletions.items()):
                try:
                    await self._booking_repository.delete(self.context, booking_id)
                    report.deletions_applied.append(booking_id)
                except BackendError as e:
                    report.failures.append(StepFailure("delete", f"Booking {booking_id}: {e.message}", booking_id))
                    logger.warning(
                        f"Deleting booking {booking_id} failed: {e.message}",
                        extra={"date_key": key, "booking_id": booking_id},
                    )
                    slot.deletion_failed = True
                    self._slots.append(slot)
                    self._flag_on_reload.add(booking_id)
                del self._pending_deletions[booking_id]

            unavailable = sorted(
                (s.time_range for s in self._slots if s.status is SlotStatus.UNAVAILABLE),
                key=lambda r: (r.start, r.end),
            )
            try:
                await self._unavailable_repository.replace_for_date(self.context, key, unavailable)
                report.unavailable_saved = True
                report.unavailable_count = len(unavailable)
            except BackendError as e:
                report.failures.append(StepFailure("unavailable", f"Unavailable ranges: {e.message}"))
                logger.warning(f"Saving unavailable ranges for {key} failed: {e.message}")

            self._edits = {}
        finally:
            self._saving = False

        try:
            await self.load(key)
            report.refreshed = True
        except BackendError as e:
            report.failures.append(StepFailure("refresh", f"Reloading {key}: {e.message}"))

        logger.info(f"Saved schedule for {key}: {report.summary()}", extra={"date_key": key})
        return report

    def _slot_for_booking(self, booking_id: int) -> Optional[ScheduleSlot]:
        for slot in self._slots:
            if slot.booking_id == booking_id:
                return slot
        return None

    @staticmethod
    async def _ask(prompt: Optional[ContinuePrompt], failure: StepFailure) -> bool:
        if prompt is None:
            return True
        answer = prompt(failure)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)
