"""Public booking endpoints."""

from fastapi import APIRouter, status

from ....application.services.booking_wizard import CustomerDetails
from ....infrastructure.logging import get_logger
from ....infrastructure.services import get_service_factory
from ..schemas.booking_schemas import BookingCreatedResponse, PublicBookingRequest

router = APIRouter()
logger = get_logger(__name__)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_booking(request: PublicBookingRequest) -> BookingCreatedResponse:
    """Submit a booking request; it stays pending until an admin approves it.

    The wizard steps run in order, so the chosen range is checked against
    booked slots twice: once on selection and again right before submission.
    """
    async with get_service_factory().get_booking_wizard() as wizard:
        wizard.select_package(request.package_id)
        wizard.select_date_time(request.date, request.start_time)
        wizard.set_customer_details(CustomerDetails(
            name=request.name,
            email=request.email,
            phone=request.phone,
            location=request.location,
            special_requests=request.special_requests,
        ))
        amount = wizard.choose_payment(request.payment_type)
        created = await wizard.submit()

    return BookingCreatedResponse(
        booking_id=created.booking_id,
        booking_reference=created.booking_reference,
        status="PENDING",
        amount_due=float(amount),
        message="Booking request received and awaiting approval",
    )
