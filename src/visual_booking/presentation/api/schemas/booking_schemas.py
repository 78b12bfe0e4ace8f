"""Pydantic schemas for public booking and approval requests and responses."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ....application.ports.repositories import BookingDetails
from ....application.services.availability_service import SlotProposal
from ....domain.entities.booking import Booking
from ....domain.value_objects.service_package import ServicePackage


class PackageResponse(BaseModel):
    """Response model for a service package."""
    id: int
    category: str
    name: str
    hours: int
    price: float
    description: str

    @classmethod
    def from_package(cls, package: ServicePackage) -> "PackageResponse":
        return cls(
            id=package.id,
            category=package.category,
            name=package.name,
            hours=package.hours,
            price=float(package.price),
            description=package.description,
        )


class SlotProposalResponse(BaseModel):
    """Response model for one candidate time range."""
    date: str
    start_time: str = Field(..., description="Start time in HH:MM format")
    end_time: str = Field(..., description="End time in HH:MM format")
    formatted_start_time: str
    formatted_end_time: str
    is_conflicting: bool
    label: Optional[str] = None

    @classmethod
    def from_proposal(cls, proposal: SlotProposal) -> "SlotProposalResponse":
        return cls(**proposal.to_dict())


class AvailabilityResponse(BaseModel):
    """Response model for a date's candidate ranges."""
    date: str
    duration_hours: int
    package_id: Optional[int] = None
    slots: List[SlotProposalResponse]
    available_count: int


class PublicBookingRequest(BaseModel):
    """Request model for the public booking funnel, submitted in one call."""
    package_id: int
    date: str = Field(..., description="Booking date in YYYY-MM-DD format")
    start_time: str = Field(..., description="Start time, 24-hour or 12-hour")
    name: str
    email: str
    phone: str
    location: str
    special_requests: str = ""
    payment_type: str = Field("Down Payment", description="'Full Payment' or 'Down Payment'")


class BookingCreatedResponse(BaseModel):
    """Response model for a created booking."""
    booking_id: Optional[int] = None
    booking_reference: Optional[str] = None
    status: str
    amount_due: Optional[float] = None
    message: str


class BookingResponse(BaseModel):
    """Response model for a booking."""
    id: Optional[int]
    booking_reference: Optional[str] = None
    date: str
    start_time: str
    end_time: str
    time_range: str
    status: str
    guest_name: str
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    location: Optional[str] = None
    category_name: Optional[str] = None
    package_name: Optional[str] = None
    package_price: Optional[float] = None
    special_requests: Optional[str] = None
    admin_notes: Optional[str] = None

    @classmethod
    def from_entity(cls, booking: Booking) -> "BookingResponse":
        return cls(
            id=booking.id,
            booking_reference=booking.booking_reference,
            date=booking.date_key,
            start_time=booking.time_range.start_24,
            end_time=booking.time_range.end_24,
            time_range=booking.time_range.format_time_range(),
            status=booking.status.value,
            guest_name=booking.guest_name,
            guest_email=booking.guest_email,
            guest_phone=booking.guest_phone,
            location=booking.location,
            category_name=booking.category_name,
            package_name=booking.package_name,
            package_price=float(booking.package_price) if booking.package_price is not None else None,
            special_requests=booking.special_requests,
            admin_notes=booking.admin_notes,
        )


class BookingDetailsResponse(BaseModel):
    """Response model for a booking joined with its payment."""
    booking: BookingResponse
    payment: Optional[Dict[str, Any]] = None
    payment_proof_url: Optional[str] = None

    @classmethod
    def from_details(cls, details: BookingDetails) -> "BookingDetailsResponse":
        return cls(
            booking=BookingResponse.from_entity(details.booking),
            payment=details.payment,
            payment_proof_url=details.payment_proof_url,
        )


class ApproveRequest(BaseModel):
    """Request model for approving a booking."""
    admin_notes: str = ""


class RejectRequest(BaseModel):
    """Request model for rejecting a booking."""
    reason: str = Field(..., description="Reason shown to the customer")

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v: str) -> str:
        """A rejection reason is required."""
        if not v or not v.strip():
            raise ValueError('Please provide a reason for rejection')
        return v.strip()


class ActionResponse(BaseModel):
    """Response model for approve/reject actions."""
    booking_id: int
    message: str
