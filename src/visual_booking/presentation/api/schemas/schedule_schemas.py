"""Pydantic schemas for the admin schedule editor endpoints."""

from typing import List, Optional, Union

from pydantic import BaseModel, Field, model_validator

from ....application.services.manual_booking_service import ManualBookingForm
from ....application.services.schedule_editor import SaveReport, SlotChange, TimeOption
from ....domain.entities.schedule_slot import ScheduleSlot
from ....domain.value_objects.service_package import PHOTOGRAPHY
from ....infrastructure.editor_sessions import EditorSession


class OpenSessionRequest(BaseModel):
    """Request model for opening an editor on a date."""
    date: str = Field(..., description="Date in YYYY-MM-DD format")


class SlotResponse(BaseModel):
    """Response model for one editor slot."""
    id: int
    start: str = Field(..., description="Start time in HH:MM format")
    end: str = Field(..., description="End time in HH:MM format")
    start_display: str
    end_display: str
    status: str
    booking_id: Optional[int] = None
    server_id: Optional[int] = None
    deletion_failed: bool = False

    @classmethod
    def from_slot(cls, slot: ScheduleSlot) -> "SlotResponse":
        return cls(**slot.to_dict())


class EditEntry(BaseModel):
    """A queued booking time change."""
    booking_id: int
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class SessionResponse(BaseModel):
    """Response model for an editor session's current state."""
    session_id: str
    date: Optional[str]
    slots: List[SlotResponse]
    edit_queue: List[EditEntry]
    pending_deletions: List[int]
    conflicts: List[List[int]] = Field(default_factory=list, description="Overlapping slot id pairs")
    has_pending_changes: bool
    can_save: bool
    is_saving: bool
    stale: bool = Field(False, description="A stopped save left the backend partly updated; reload to resync")

    @classmethod
    def from_session(cls, session: EditorSession) -> "SessionResponse":
        editor = session.editor
        return cls(
            session_id=session.id,
            date=editor.date,
            slots=[SlotResponse.from_slot(s) for s in editor.slots],
            edit_queue=[
                EditEntry(booking_id=e.booking_id, start_time=e.start_time, end_time=e.end_time)
                for e in editor.edit_queue
            ],
            pending_deletions=editor.pending_deletions,
            conflicts=[[a.id, b.id] for a, b in editor.unresolved_conflicts()],
            has_pending_changes=editor.has_pending_changes,
            can_save=editor.can_save,
            is_saving=editor.is_saving,
            stale=editor.is_stale,
        )


class SlotChangeResponse(BaseModel):
    """Response model for a slot mutation."""
    slot: SlotResponse
    warnings: List[str] = Field(default_factory=list)
    session: SessionResponse

    @classmethod
    def from_change(cls, session: EditorSession, change: SlotChange) -> "SlotChangeResponse":
        return cls(
            slot=SlotResponse.from_slot(change.slot),
            warnings=change.warnings,
            session=SessionResponse.from_session(session),
        )


class TimeRangeRequest(BaseModel):
    """Request model with an optional start and end time."""
    start: Optional[str] = Field(None, description="Start time, 24-hour or 12-hour")
    end: Optional[str] = Field(None, description="End time, 24-hour or 12-hour")


class AddSlotRequest(TimeRangeRequest):
    """Request model for adding a slot; omit both times for the first free window."""

    @model_validator(mode='after')
    def check_both_or_neither(self):
        if (self.start is None) != (self.end is None):
            raise ValueError('Provide both start and end, or neither')
        return self


class ResizeSlotRequest(TimeRangeRequest):
    """Request model for changing a slot's start and/or end."""

    @model_validator(mode='after')
    def check_any(self):
        if self.start is None and self.end is None:
            raise ValueError('Provide a new start or end time')
        return self


class TimeOptionResponse(BaseModel):
    """Response model for a dropdown time option."""
    value: str
    label: str
    disabled: bool
    selected: bool

    @classmethod
    def from_option(cls, option: TimeOption) -> "TimeOptionResponse":
        return cls(value=option.value, label=option.label, disabled=option.disabled, selected=option.selected)


class SaveRequest(BaseModel):
    """Request model for committing staged changes."""
    continue_on_failure: bool = Field(
        True, description="Keep going after a failed booking time update"
    )


class StepFailureResponse(BaseModel):
    step: str
    message: str
    booking_id: Optional[int] = None


class SaveResponse(BaseModel):
    """Response model for a save, step by step."""
    date: str
    succeeded: bool
    summary: str
    edits_applied: List[int]
    deletions_applied: List[int]
    failures: List[StepFailureResponse]
    unavailable_saved: bool
    unavailable_count: int
    aborted: bool
    refreshed: bool
    session: SessionResponse

    @classmethod
    def from_report(cls, session: EditorSession, report: SaveReport) -> "SaveResponse":
        return cls(
            date=report.date,
            succeeded=report.succeeded,
            summary=report.summary(),
            edits_applied=report.edits_applied,
            deletions_applied=report.deletions_applied,
            failures=[
                StepFailureResponse(step=f.step, message=f.message, booking_id=f.booking_id)
                for f in report.failures
            ],
            unavailable_saved=report.unavailable_saved,
            unavailable_count=report.unavailable_count,
            aborted=report.aborted,
            refreshed=report.refreshed,
            session=SessionResponse.from_session(session),
        )


class ManualBookingRequest(BaseModel):
    """Request model for a manual booking against a time range of the open date."""
    start: str = Field(..., description="Start time, 24-hour or 12-hour")
    end: str = Field(..., description="End time, 24-hour or 12-hour")
    category: str = PHOTOGRAPHY
    package: str = ""
    full_name: str = ""
    phone_number: str = ""
    location: str = ""
    special_request: str = ""
    payment_type: str = "Down Payment"
    payment_mode: str = "Gcash"
    account_number: str = ""
    amount: Optional[Union[str, float]] = None

    def to_form(self) -> ManualBookingForm:
        return ManualBookingForm(
            category=self.category,
            package=self.package,
            full_name=self.full_name,
            phone_number=self.phone_number,
            location=self.location,
            special_request=self.special_request,
            payment_type=self.payment_type,
            payment_mode=self.payment_mode,
            account_number=self.account_number,
            amount=None if self.amount is None else str(self.amount),
        )


class ManualBookingResponse(BaseModel):
    """Response model for a created manual booking."""
    booking_id: Optional[int] = None
    booking_reference: Optional[str] = None
    refreshed: bool = True
    refresh_error: Optional[str] = None
    session: SessionResponse
