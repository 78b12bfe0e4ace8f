"""Unit tests for the admin schedule editor."""

import pytest
from datetime import date
from unittest.mock import AsyncMock, Mock

from src.visual_booking.application.ports.repositories import BookingRepository, UnavailableRangeRepository
from src.visual_booking.application.services.schedule_editor import DEFAULT_WINDOW, ScheduleEditor
from src.visual_booking.domain.entities.booking import Booking, BookingStatus
from src.visual_booking.domain.entities.schedule_slot import SlotStatus, UnavailableRange
from src.visual_booking.domain.errors import (
    BackendError,
    BackendUnavailableError,
    ConflictError,
    EditorStateError,
    NotAuthenticatedError,
    ValidationError,
)
from src.visual_booking.domain.value_objects.auth import ClientContext
from src.visual_booking.domain.value_objects.time_range import TimeRange


DAY = "2025-04-18"
CONTEXT = ClientContext(token="admin-token")


def make_booking(booking_id, start, end, day=date(2025, 4, 18), status=BookingStatus.CONFIRMED):
    return Booking(booking_id, day, TimeRange.parse(start, end), status, guest_name="Guest")


class TestScheduleEditor:
    """Test cases for ScheduleEditor."""

    def setup_mocks(self, bookings=None, unavailable=None):
        """Setup repository mocks around one confirmed morning booking."""
        booking_repo = Mock(spec=BookingRepository)
        booking_repo.find_by_month = AsyncMock(
            return_value=[make_booking(101, "09:00", "13:00")] if bookings is None else bookings
        )
        booking_repo.update_time_range = AsyncMock(return_value="Booking time updated successfully")
        booking_repo.delete = AsyncMock(return_value="Booking deleted successfully")
        booking_repo.get_details = AsyncMock()

        unavailable_repo = Mock(spec=UnavailableRangeRepository)
        unavailable_repo.find_by_date = AsyncMock(return_value=unavailable or [])
        unavailable_repo.replace_for_date = AsyncMock(return_value="Unavailable time ranges saved successfully")
        return booking_repo, unavailable_repo

    async def loaded_editor(self, bookings=None, unavailable=None, context=CONTEXT):
        booking_repo, unavailable_repo = self.setup_mocks(bookings, unavailable)
        editor = ScheduleEditor(booking_repo, unavailable_repo, context)
        await editor.load(DAY)
        return editor, booking_repo, unavailable_repo

    def booking_slot(self, editor, booking_id):
        return next(s for s in editor.slots if s.booking_id == booking_id)

    # Loading

    @pytest.mark.asyncio
    async def test_load_with_booking_does_not_seed_default_slot(self):
        """Test a day with a booking shows only its booking slot."""
        editor, booking_repo, _ = await self.loaded_editor()

        assert [(s.status, str(s.time_range)) for s in editor.slots] == [
            (SlotStatus.BOOKING, "09:00-13:00")
        ]
        booking_repo.find_by_month.assert_awaited_once_with(CONTEXT, 2025, 4)

    @pytest.mark.asyncio
    async def test_load_without_bookings_seeds_default_window(self):
        """Test an empty day gets exactly one available slot spanning the default window."""
        booking_repo, unavailable_repo = self.setup_mocks(bookings=[make_booking(101, "09:00", "13:00")])
        editor = ScheduleEditor(booking_repo, unavailable_repo, CONTEXT)

        slots = await editor.load("2025-04-19")

        assert len(slots) == 1
        assert slots[0].status is SlotStatus.AVAILABLE
        assert slots[0].time_range == DEFAULT_WINDOW
        assert str(slots[0].time_range) == "06:00-22:00"

    @pytest.mark.asyncio
    async def test_load_ignores_non_blocking_bookings(self):
        """Test pending and rejected bookings never become slots."""
        editor, _, _ = await self.loaded_editor(bookings=[
            make_booking(1, "09:00", "13:00", status=BookingStatus.PENDING),
            make_booking(2, "14:00", "16:00", status=BookingStatus.REJECTED),
        ])

        assert [s.status for s in editor.slots] == [SlotStatus.AVAILABLE]

    @pytest.mark.asyncio
    async def test_load_deduplicates_unavailable_ranges(self):
        """Test repeated unavailable ranges are loaded once."""
        ranges = [
            UnavailableRange(DAY, TimeRange.parse("15:00", "17:00"), id=1),
            UnavailableRange(DAY, TimeRange.parse("15:00", "17:00"), id=2),
        ]
        editor, _, _ = await self.loaded_editor(unavailable=ranges)

        unavailable = [s for s in editor.slots if s.status is SlotStatus.UNAVAILABLE]
        assert len(unavailable) == 1
        assert unavailable[0].server_id == 1

    @pytest.mark.asyncio
    async def test_load_without_token_fires_no_request(self):
        """Test the missing-token short circuit."""
        booking_repo, unavailable_repo = self.setup_mocks()
        editor = ScheduleEditor(booking_repo, unavailable_repo, ClientContext())

        with pytest.raises(NotAuthenticatedError):
            await editor.load(DAY)

        booking_repo.find_by_month.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_load_blocks_editor_until_retry(self):
        """Test a failed load is fatal for editing until it succeeds."""
        booking_repo, unavailable_repo = self.setup_mocks()
        booking_repo.find_by_month = AsyncMock(side_effect=BackendUnavailableError("Connection refused"))
        editor = ScheduleEditor(booking_repo, unavailable_repo, CONTEXT)

        with pytest.raises(BackendUnavailableError):
            await editor.load(DAY)

        assert editor.load_error == "Connection refused"
        assert editor.can_save is False
        with pytest.raises(EditorStateError, match="Connection refused"):
            editor.add_slot()

        booking_repo.find_by_month = AsyncMock(return_value=[])
        await editor.reload()
        assert editor.is_loaded is True

    # Edits

    @pytest.mark.asyncio
    async def test_booking_edits_merge_into_one_queue_entry(self):
        """Test end then start edits on one booking share a queue entry."""
        editor, _, _ = await self.loaded_editor()
        slot = self.booking_slot(editor, 101)

        editor.resize_slot(slot.id, end="15:00")

        assert len(editor.edit_queue) == 1
        assert editor.edit_queue[0].booking_id == 101
        assert editor.edit_queue[0].end_time == "15:00"
        assert editor.edit_queue[0].start_time is None

        editor.resize_slot(slot.id, start="8:00 AM")

        assert len(editor.edit_queue) == 1
        assert editor.edit_queue[0].start_time == "08:00"
        assert editor.edit_queue[0].end_time == "15:00"
        assert slot.time_range == TimeRange.parse("08:00", "15:00")

    @pytest.mark.asyncio
    async def test_resize_rejects_inverted_range(self):
        """Test validation before anything changes."""
        editor, _, _ = await self.loaded_editor()
        slot = self.booking_slot(editor, 101)

        with pytest.raises(ValidationError):
            editor.resize_slot(slot.id, end="08:00")

        assert editor.edit_queue == []

    @pytest.mark.asyncio
    async def test_short_range_warns_but_applies(self):
        """Test the soft minimum-duration rule."""
        editor, _, _ = await self.loaded_editor()
        slot = self.booking_slot(editor, 101)

        change = editor.resize_slot(slot.id, end="11:00")

        assert slot.time_range == TimeRange.parse("09:00", "11:00")
        assert change.warnings and "shorter than" in change.warnings[0]

    @pytest.mark.asyncio
    async def test_toggle_booking_slot_is_forbidden(self):
        """Test booking slots cannot be retyped."""
        editor, _, _ = await self.loaded_editor()
        slot = self.booking_slot(editor, 101)

        with pytest.raises(EditorStateError):
            editor.toggle_slot(slot.id)
        with pytest.raises(EditorStateError):
            editor.delete_slot(slot.id)

        assert slot.status is SlotStatus.BOOKING

    @pytest.mark.asyncio
    async def test_conflicting_toggle_needs_confirmation(self):
        """Test overlap warnings and the confirmed override."""
        editor, _, _ = await self.loaded_editor()
        with pytest.raises(ConflictError):
            editor.add_slot(TimeRange.parse("12:00", "16:00"))
        change = editor.add_slot(TimeRange.parse("12:00", "16:00"), force=True)

        with pytest.raises(ConflictError) as exc_info:
            editor.toggle_slot(change.slot.id)

        assert change.slot.status is SlotStatus.AVAILABLE
        assert [s.booking_id for s in exc_info.value.conflicts] == [101]

        editor.toggle_slot(change.slot.id, force=True)

        assert change.slot.status is SlotStatus.UNAVAILABLE
        assert editor.can_save is False
        with pytest.raises(ConflictError):
            await editor.save()

    @pytest.mark.asyncio
    async def test_add_slot_finds_first_free_window(self):
        """Test the default range skips blocking slots."""
        editor, _, _ = await self.loaded_editor()

        change = editor.add_slot()

        assert change.slot.time_range == TimeRange.parse("06:00", "09:00")
        assert change.slot.status is SlotStatus.AVAILABLE

    @pytest.mark.asyncio
    async def test_time_options_disable_inverting_and_conflicting_hours(self):
        """Test dropdown options follow the overlap predicate."""
        editor, _, _ = await self.loaded_editor(
            unavailable=[UnavailableRange(DAY, TimeRange.parse("15:00", "17:00"))]
        )
        slot = self.booking_slot(editor, 101)

        options = {o.value: o for o in editor.time_options(slot.id, "end")}

        assert options["13:00"].selected is True
        assert options["09:00"].disabled is True
        assert options["14:00"].disabled is False
        assert options["15:00"].disabled is False
        assert options["16:00"].disabled is True

    # Save

    @pytest.mark.asyncio
    async def test_save_continues_past_rejected_edit(self):
        """Test a rejected edit does not stop the deletion or the unavailable replacement."""
        editor, booking_repo, unavailable_repo = await self.loaded_editor(bookings=[
            make_booking(101, "09:00", "13:00"),
            make_booking(102, "15:00", "17:00"),
        ])
        booking_repo.update_time_range = AsyncMock(
            side_effect=BackendError("Cannot update booking time: overlaps with existing bookings", 409)
        )
        editor.resize_slot(self.booking_slot(editor, 101).id, end="14:00")
        editor.delete_booking(self.booking_slot(editor, 102).id)
        prompts = []

        report = await editor.save(lambda failure: prompts.append(failure) or True)

        booking_repo.update_time_range.assert_awaited_once_with(CONTEXT, 101, TimeRange.parse("09:00", "14:00"))
        booking_repo.delete.assert_awaited_once_with(CONTEXT, 102)
        unavailable_repo.replace_for_date.assert_awaited_once_with(CONTEXT, DAY, [])
        assert report.deletions_applied == [102]
        assert report.edits_applied == []
        assert [f.step for f in report.failures] == ["edit"]
        assert "overlaps with existing bookings" in report.failures[0].message
        assert len(prompts) == 1
        assert report.refreshed is True
        assert booking_repo.find_by_month.await_count == 2

    @pytest.mark.asyncio
    async def test_operator_can_stop_after_failed_edit(self):
        """Test declining to continue leaves later steps unattempted."""
        editor, booking_repo, unavailable_repo = await self.loaded_editor(bookings=[
            make_booking(101, "09:00", "13:00"),
            make_booking(102, "15:00", "17:00"),
        ])
        booking_repo.update_time_range = AsyncMock(side_effect=BackendError("Booking not found", 404))
        editor.resize_slot(self.booking_slot(editor, 101).id, end="14:00")
        editor.delete_booking(self.booking_slot(editor, 102).id)

        async def decline(failure):
            return False

        report = await editor.save(decline)

        assert report.aborted is True
        booking_repo.delete.assert_not_awaited()
        unavailable_repo.replace_for_date.assert_not_awaited()
        assert editor.pending_deletions == [102]
        assert [e.booking_id for e in editor.edit_queue] == [101]
        assert editor.is_saving is False
        assert editor.is_stale is True

    @pytest.mark.asyncio
    async def test_stopped_save_drops_applied_edits_from_queue(self):
        """Test only the failed and unattempted edits stay queued until a reload."""
        editor, booking_repo, _ = await self.loaded_editor(bookings=[
            make_booking(101, "09:00", "13:00"),
            make_booking(102, "15:00", "17:00"),
        ])
        booking_repo.update_time_range = AsyncMock(side_effect=[
            "Booking time updated successfully",
            BackendError("Booking not found", 404),
        ])
        editor.resize_slot(self.booking_slot(editor, 101).id, end="14:00")
        editor.resize_slot(self.booking_slot(editor, 102).id, end="18:00")

        async def decline(failure):
            return False

        report = await editor.save(decline)

        assert report.edits_applied == [101]
        assert report.refreshed is False
        assert [e.booking_id for e in editor.edit_queue] == [102]
        assert editor.is_stale is True
        assert booking_repo.find_by_month.await_count == 1

        await editor.reload()

        assert editor.is_stale is False
        assert editor.edit_queue == []

    @pytest.mark.asyncio
    async def test_failed_deletion_restores_flagged_slot(self):
        """Test an optimistic deletion is reconciled when the backend refuses it."""
        editor, booking_repo, _ = await self.loaded_editor()
        booking_repo.delete = AsyncMock(side_effect=BackendError("Error deleting booking", 500))
        editor.delete_booking(self.booking_slot(editor, 101).id)
        assert editor.slots == []

        report = await editor.save()

        assert [f.step for f in report.failures] == ["delete"]
        restored = self.booking_slot(editor, 101)
        assert restored.deletion_failed is True

    @pytest.mark.asyncio
    async def test_save_submits_unavailable_set(self):
        """Test the full replacement holds every unavailable slot, sorted."""
        editor, _, unavailable_repo = await self.loaded_editor()
        late = editor.add_slot(TimeRange.parse("18:00", "21:00")).slot
        early = editor.add_slot(TimeRange.parse("14:00", "17:00")).slot
        editor.toggle_slot(late.id)
        editor.toggle_slot(early.id)

        report = await editor.save()

        unavailable_repo.replace_for_date.assert_awaited_once_with(
            CONTEXT, DAY, [TimeRange.parse("14:00", "17:00"), TimeRange.parse("18:00", "21:00")]
        )
        assert report.unavailable_count == 2
        assert report.succeeded is True

    @pytest.mark.asyncio
    async def test_save_without_token_is_blocked(self):
        """Test no step runs without credentials."""
        editor, booking_repo, unavailable_repo = await self.loaded_editor()
        editor.resize_slot(self.booking_slot(editor, 101).id, end="15:00")
        editor.context = ClientContext()

        with pytest.raises(NotAuthenticatedError):
            await editor.save()

        booking_repo.update_time_range.assert_not_awaited()
        unavailable_repo.replace_for_date.assert_not_awaited()
        assert len(editor.edit_queue) == 1

    @pytest.mark.asyncio
    async def test_failed_refresh_is_reported(self):
        """Test a failing reload after save is a reported step failure."""
        editor, booking_repo, _ = await self.loaded_editor()
        booking_repo.find_by_month = AsyncMock(side_effect=BackendUnavailableError("timed out"))

        report = await editor.save()

        assert report.unavailable_saved is True
        assert report.refreshed is False
        assert [f.step for f in report.failures] == ["refresh"]
