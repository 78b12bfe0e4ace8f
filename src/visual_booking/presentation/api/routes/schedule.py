"""Admin schedule editor endpoints.

An editor session holds one date's slot list, edit queue and pending
deletions between calls. Operations that would create an overlap answer
409; repeating the call with ``confirm=true`` applies it anyway.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from fastapi import APIRouter, Depends, Query, Response, status

from ....domain.errors import ValidationError
from ....domain.value_objects.auth import ClientContext
from ....domain.value_objects.date_key import date_key
from ....domain.value_objects.time_range import TimeRange
from ....infrastructure.editor_sessions import EditorSession
from ....infrastructure.services import get_service_factory
from ..middleware.auth import require_client_context
from ..schemas.booking_schemas import BookingDetailsResponse
from ..schemas.schedule_schemas import (
    AddSlotRequest,
    ManualBookingRequest,
    ManualBookingResponse,
    OpenSessionRequest,
    ResizeSlotRequest,
    SaveRequest,
    SaveResponse,
    SessionResponse,
    SlotChangeResponse,
    SlotResponse,
    TimeOptionResponse,
)

router = APIRouter()

CONFIRM = Query(False, description="Apply the change even though it overlaps another range")


@asynccontextmanager
async def _locked(session_id: str, context: ClientContext) -> AsyncIterator[EditorSession]:
    """Hold a session's lock with the caller's credentials bound to its editor."""
    session = get_service_factory().sessions.get(session_id)
    async with session.lock:
        session.editor.context = context
        yield session


def _time_range(start: str, end: str) -> TimeRange:
    try:
        return TimeRange.parse(start, end)
    except ValueError as e:
        raise ValidationError({"time_range": str(e)}) from e


@router.post("", status_code=status.HTTP_201_CREATED)
async def open_session(
    request: OpenSessionRequest,
    context: ClientContext = Depends(require_client_context)
) -> SessionResponse:
    """Load a date into a new editor session."""
    try:
        key = date_key(request.date)
    except ValueError as e:
        raise ValidationError({"date": str(e)}) from e

    factory = get_service_factory()
    editor = factory.schedule_editor(context)
    await editor.load(key)
    return SessionResponse.from_session(factory.sessions.open(editor))


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    context: ClientContext = Depends(require_client_context)
) -> SessionResponse:
    """Get the session's current slot list and staged changes."""
    async with _locked(session_id, context) as session:
        return SessionResponse.from_session(session)


@router.post("/{session_id}/reload")
async def reload_session(
    session_id: str,
    context: ClientContext = Depends(require_client_context)
) -> SessionResponse:
    """Re-fetch the date, discarding unsaved changes. Also the retry after a failed load."""
    async with _locked(session_id, context) as session:
        await session.editor.reload()
        return SessionResponse.from_session(session)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    session_id: str,
    context: ClientContext = Depends(require_client_context)
) -> Response:
    """Discard a session and its unsaved changes."""
    get_service_factory().sessions.close(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{session_id}/slots", status_code=status.HTTP_201_CREATED)
async def add_slot(
    session_id: str,
    request: AddSlotRequest,
    confirm: bool = CONFIRM,
    context: ClientContext = Depends(require_client_context)
) -> SlotChangeResponse:
    """Add an available slot, by default in the first free window."""
    time_range = _time_range(request.start, request.end) if request.start is not None else None
    async with _locked(session_id, context) as session:
        change = session.editor.add_slot(time_range, force=confirm)
        return SlotChangeResponse.from_change(session, change)


@router.patch("/{session_id}/slots/{slot_id}")
async def resize_slot(
    session_id: str,
    slot_id: int,
    request: ResizeSlotRequest,
    confirm: bool = CONFIRM,
    context: ClientContext = Depends(require_client_context)
) -> SlotChangeResponse:
    """Change a slot's start and/or end; booking slots queue a backend update."""
    async with _locked(session_id, context) as session:
        change = session.editor.resize_slot(slot_id, request.start, request.end, force=confirm)
        return SlotChangeResponse.from_change(session, change)


@router.post("/{session_id}/slots/{slot_id}/toggle")
async def toggle_slot(
    session_id: str,
    slot_id: int,
    confirm: bool = CONFIRM,
    context: ClientContext = Depends(require_client_context)
) -> SlotChangeResponse:
    """Flip a slot between available and unavailable."""
    async with _locked(session_id, context) as session:
        change = session.editor.toggle_slot(slot_id, force=confirm)
        return SlotChangeResponse.from_change(session, change)


@router.delete("/{session_id}/slots/{slot_id}")
async def delete_slot(
    session_id: str,
    slot_id: int,
    context: ClientContext = Depends(require_client_context)
) -> SessionResponse:
    """Remove an available or unavailable slot."""
    async with _locked(session_id, context) as session:
        session.editor.delete_slot(slot_id)
        return SessionResponse.from_session(session)


@router.delete("/{session_id}/slots/{slot_id}/booking")
async def delete_booking(
    session_id: str,
    slot_id: int,
    context: ClientContext = Depends(require_client_context)
) -> SessionResponse:
    """Stage deletion of the booking behind a slot; it is deleted on save."""
    async with _locked(session_id, context) as session:
        session.editor.delete_booking(slot_id)
        return SessionResponse.from_session(session)


@router.get("/{session_id}/slots/{slot_id}/options")
async def time_options(
    session_id: str,
    slot_id: int,
    bound: str = Query("start", pattern="^(start|end)$"),
    context: ClientContext = Depends(require_client_context)
) -> List[TimeOptionResponse]:
    """Hourly options for a slot's start or end dropdown."""
    async with _locked(session_id, context) as session:
        return [TimeOptionResponse.from_option(o) for o in session.editor.time_options(slot_id, bound)]


@router.get("/{session_id}/slots/{slot_id}/booking")
async def booking_details(
    session_id: str,
    slot_id: int,
    context: ClientContext = Depends(require_client_context)
) -> BookingDetailsResponse:
    """Fetch booking and payment details behind a booked slot."""
    async with _locked(session_id, context) as session:
        details = await session.editor.booking_details(slot_id)
    return BookingDetailsResponse.from_details(details)


@router.get("/{session_id}/slots")
async def list_slots(
    session_id: str,
    context: ClientContext = Depends(require_client_context)
) -> List[SlotResponse]:
    """List the session's slots ordered by start time."""
    async with _locked(session_id, context) as session:
        return [SlotResponse.from_slot(s) for s in session.editor.slots]


@router.post("/{session_id}/save")
async def save_session(
    session_id: str,
    request: SaveRequest = SaveRequest(),
    context: ClientContext = Depends(require_client_context)
) -> SaveResponse:
    """Commit time edits, then deletions, then the unavailable set; then reload."""
    async with _locked(session_id, context) as session:
        report = await session.editor.save(lambda failure: request.continue_on_failure)
        return SaveResponse.from_report(session, report)


@router.post("/{session_id}/manual-bookings", status_code=status.HTTP_201_CREATED)
async def create_manual_booking(
    session_id: str,
    request: ManualBookingRequest,
    confirm: bool = CONFIRM,
    context: ClientContext = Depends(require_client_context)
) -> ManualBookingResponse:
    """Create a confirmed booking on the session's date, then reload the session.

    A failed reload does not fail the request; the booking exists and the
    response reports the refresh error instead.
    """
    time_range = _time_range(request.start, request.end)
    async with _locked(session_id, context) as session:
        editor = session.editor
        created = await get_service_factory().manual_booking_creator().submit(
            context,
            request.to_form(),
            editor.date,
            time_range,
            slots=editor.slots,
            force=confirm,
            on_created=editor.reload,
        )
        return ManualBookingResponse(
            booking_id=created.booking_id,
            booking_reference=created.booking_reference,
            refreshed=created.refresh_error is None,
            refresh_error=created.refresh_error,
            session=SessionResponse.from_session(session),
        )
