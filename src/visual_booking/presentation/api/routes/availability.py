"""Public availability endpoints for the booking wizard."""

from typing import Optional

from fastapi import APIRouter, Query

from ....domain.errors import ValidationError
from ....domain.value_objects.date_key import date_key
from ....domain.value_objects.service_package import find_package
from ....infrastructure.services import get_service_factory
from ..schemas.booking_schemas import AvailabilityResponse, SlotProposalResponse

router = APIRouter()


@router.get("")
async def get_availability(
    date: str = Query(..., description="Date in YYYY-MM-DD format"),
    package_id: Optional[int] = Query(None, description="Package whose hours set the slot length"),
    duration_hours: Optional[int] = Query(None, ge=1, le=23, description="Slot length when no package is given")
) -> AvailabilityResponse:
    """List every candidate range for a date, with taken ranges flagged.

    Responds 503 when booked slots cannot be loaded; no range is ever
    offered as free without them.
    """
    try:
        key = date_key(date)
    except ValueError as e:
        raise ValidationError({"date": str(e)}) from e

    if package_id is not None:
        package = find_package(package_id=package_id)
        if package is None:
            raise ValidationError({"package_id": f"Unknown package: {package_id}"})
        duration_hours = package.hours
    elif duration_hours is None:
        raise ValidationError({"duration_hours": "Provide a package_id or duration_hours"})

    async with get_service_factory().get_availability_resolver() as resolver:
        proposals = resolver.resolve(key, duration_hours)

    return AvailabilityResponse(
        date=key,
        duration_hours=duration_hours,
        package_id=package_id,
        slots=[SlotProposalResponse.from_proposal(p) for p in proposals],
        available_count=sum(1 for p in proposals if not p.is_conflicting),
    )
