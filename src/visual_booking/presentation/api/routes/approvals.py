"""Admin endpoints for the pending booking queue."""

from typing import List

from fastapi import APIRouter, Depends

from ....domain.value_objects.auth import ClientContext
from ....infrastructure.services import get_service_factory
from ..middleware.auth import require_client_context
from ..schemas.booking_schemas import (
    ActionResponse,
    ApproveRequest,
    BookingDetailsResponse,
    BookingResponse,
    RejectRequest,
)

router = APIRouter()


@router.get("/pending")
async def list_pending(context: ClientContext = Depends(require_client_context)) -> List[BookingResponse]:
    """List bookings awaiting approval."""
    bookings = await get_service_factory().approval_service().list_pending(context)
    return [BookingResponse.from_entity(b) for b in bookings]


@router.get("/{booking_id}/details")
async def get_booking_details(
    booking_id: int,
    context: ClientContext = Depends(require_client_context)
) -> BookingDetailsResponse:
    """Get a booking with its payment details."""
    details = await get_service_factory().approval_service().get_details(context, booking_id)
    return BookingDetailsResponse.from_details(details)


@router.put("/{booking_id}/approve")
async def approve_booking(
    booking_id: int,
    request: ApproveRequest = ApproveRequest(),
    context: ClientContext = Depends(require_client_context)
) -> ActionResponse:
    """Approve a pending booking; from now on it blocks its time range."""
    message = await get_service_factory().approval_service().approve(context, booking_id, request.admin_notes)
    return ActionResponse(booking_id=booking_id, message=message)


@router.put("/{booking_id}/reject")
async def reject_booking(
    booking_id: int,
    request: RejectRequest,
    context: ClientContext = Depends(require_client_context)
) -> ActionResponse:
    """Reject a pending booking with a reason."""
    message = await get_service_factory().approval_service().reject(context, booking_id, request.reason)
    return ActionResponse(booking_id=booking_id, message=message)
