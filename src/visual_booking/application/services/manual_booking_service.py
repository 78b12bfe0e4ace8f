"""Manual booking creation from the admin calendar."""

import logging
import time
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

from ..ports.repositories import BookingRepository, CreatedBooking
from ...domain.entities.schedule_slot import ScheduleSlot
from ...domain.errors import BackendError, ConflictError, ValidationError
from ...domain.services.overlap import find_conflicts
from ...domain.value_objects.auth import ClientContext
from ...domain.value_objects.date_key import DateLike, date_key
from ...domain.value_objects.payment import PaymentMethod, PaymentType
from ...domain.value_objects.service_package import PHOTOGRAPHY, find_package
from ...domain.value_objects.time_range import TimeRange


logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "BKLQ"
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(number: int) -> str:
    digits = []
    while True:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
        if number == 0:
            return "".join(reversed(digits))


def generate_booking_reference(now_ms: Optional[int] = None) -> str:
    """Human-readable reference from the current time, e.g. ``BKLQ3K9ZQ1``."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{REFERENCE_PREFIX}{_to_base36(now_ms)[-6:].upper()}"


@dataclass
class ManualBookingForm:
    """Fields an admin fills in for a manual booking."""
    category: str = PHOTOGRAPHY
    package: str = ""
    full_name: str = ""
    phone_number: str = ""
    location: str = ""
    special_request: str = ""
    payment_type: str = "Down Payment"
    payment_mode: str = "Gcash"
    account_number: str = ""
    amount: Optional[str] = None

    @property
    def is_gcash(self) -> bool:
        return (self.payment_mode or "").strip().lower() == "gcash"

    def validate(self) -> Dict[str, str]:
        """Get field errors; an empty dict means the form is valid."""
        errors: Dict[str, str] = {}
        if not self.full_name.strip():
            errors["full_name"] = "Name is required"
        if not self.phone_number.strip():
            errors["phone_number"] = "Phone number is required"
        if not self.location.strip():
            errors["location"] = "Location is required"
        if not self.package:
            errors["package"] = "Please select a package"
        elif find_package(name=self.package, category=self.category) is None:
            errors["package"] = f"Unknown package for {self.category}: {self.package}"
        if self.is_gcash and not self.account_number.strip():
            errors["account_number"] = "Account number is required for Gcash payments"
        try:
            PaymentMethod.from_label(self.payment_mode)
        except ValueError as e:
            errors["payment_mode"] = str(e)
        if self.amount is None or str(self.amount).strip() == "":
            errors["amount"] = "Payment amount is required"
        else:
            try:
                if Decimal(str(self.amount)) <= 0:
                    errors["amount"] = "Payment amount must be greater than zero"
            except InvalidOperation:
                errors["amount"] = "Payment amount must be a number"
        return errors


class ManualBookingCreator:
    """Creates bookings directly against a chosen time range."""

    def __init__(self, booking_repository: BookingRepository):
        self._booking_repository = booking_repository

    def build_payload(
        self,
        form: ManualBookingForm,
        day: DateLike,
        time_range: TimeRange,
        booking_reference: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build the backend payload with 24-hour times and backend enums."""
        package = find_package(name=form.package, category=form.category)
        package_price = package.price if package else Decimal("0")
        payment_method = PaymentMethod.from_label(form.payment_mode)
        return {
            "bookingDate": date_key(day),
            "bookingTimeStart": time_range.start_24,
            "bookingTimeEnd": time_range.end_24,
            "packageName": form.package,
            "categoryName": form.category,
            "guestName": form.full_name.strip(),
            "guestPhone": form.phone_number.strip(),
            "location": form.location.strip(),
            "specialRequests": form.special_request,
            "paymentType": PaymentType.from_label(form.payment_type).value,
            "paymentMethod": payment_method.value,
            "gcashNumber": form.account_number.strip() if payment_method is PaymentMethod.GCASH else None,
            "amount": float(Decimal(str(form.amount))),
            "packagePrice": float(package_price),
            "bookingReference": booking_reference or generate_booking_reference(),
        }

    async def submit(
        self,
        context: ClientContext,
        form: ManualBookingForm,
        day: DateLike,
        time_range: TimeRange,
        slots: Iterable[ScheduleSlot] = (),
        force: bool = False,
        on_created: Optional[Callable[[], Awaitable[Any]]] = None
    ) -> CreatedBooking:
        """Validate, re-check conflicts against ``slots`` and create the booking.

        The conflict check runs here, at submit time, because the slot list
        may have changed since the range was picked. Backend error messages
        propagate unchanged.
        """
        errors = form.validate()
        if errors:
            raise ValidationError(errors)
        context.require_token()

        conflicts = find_conflicts(time_range, slots)
        if conflicts and not force:
            raise ConflictError(
                f"{time_range} conflicts with an existing booking or unavailable range",
                conflicts,
            )
        if conflicts:
            logger.warning(
                f"Manual booking on {date_key(day)} {time_range} overrides a conflict",
                extra={"business_rule": "no_overlap", "date_key": date_key(day)},
            )

        payload = self.build_payload(form, day, time_range)
        created = await self._booking_repository.create_manual(context, payload)
        logger.info(
            f"Manual booking {created.booking_reference or payload['bookingReference']} created",
            extra={"date_key": payload["bookingDate"], "booking_id": created.booking_id},
        )
        if on_created is not None:
            try:
                await on_created()
            except BackendError as e:
                logger.warning(
                    f"Manual booking {created.booking_id} created but the refresh failed: {e.message}",
                    extra={"date_key": payload["bookingDate"], "booking_id": created.booking_id},
                )
                created.refresh_error = e.message
        return created
