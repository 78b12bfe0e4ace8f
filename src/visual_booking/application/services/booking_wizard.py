"""Public booking wizard: package, date/time, details, payment, confirmation."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .availability_service import AvailabilityResolver, SlotProposal
from ..ports.repositories import BookingRepository, CreatedBooking
from ...domain.errors import ConflictError, EditorStateError, ValidationError
from ...domain.value_objects.date_key import DateLike, date_key
from ...domain.value_objects.payment import PaymentMethod, PaymentType, amount_due
from ...domain.value_objects.service_package import ServicePackage, find_package
from ...domain.value_objects.time_range import TimeRange, to_minutes


logger = logging.getLogger(__name__)


class WizardStep(Enum):
    """Wizard steps in order."""
    PACKAGE = 1
    DATE_TIME = 2
    CUSTOMER_DETAILS = 3
    PAYMENT = 4
    CONFIRMATION = 5


@dataclass(frozen=True)
class CustomerDetails:
    """Contact details entered by the customer."""
    name: str
    email: str
    phone: str
    location: str
    special_requests: str = ""

    def validate(self) -> Dict[str, str]:
        """Get field errors; an empty dict means the details are valid."""
        errors: Dict[str, str] = {}
        if not self.name.strip():
            errors["name"] = "Name is required"
        if not self.email.strip():
            errors["email"] = "Email is required"
        elif "@" not in self.email:
            errors["email"] = "Invalid email format"
        if not self.phone.strip():
            errors["phone"] = "Phone number is required"
        if not self.location.strip():
            errors["location"] = "Event location is required"
        return errors


class BookingWizard:
    """Step object behind the public booking funnel."""

    def __init__(self, resolver: AvailabilityResolver, booking_repository: BookingRepository):
        self._resolver = resolver
        self._booking_repository = booking_repository
        self.step = WizardStep.PACKAGE
        self.package: Optional[ServicePackage] = None
        self.date: Optional[str] = None
        self.time_range: Optional[TimeRange] = None
        self.customer: Optional[CustomerDetails] = None
        self.payment_type: Optional[PaymentType] = None
        self.confirmation: Optional[CreatedBooking] = None

    def _require_step(self, *allowed: WizardStep) -> None:
        if self.step not in allowed:
            raise EditorStateError(f"Not available at step {self.step.name}")

    def select_package(self, package_id: int) -> ServicePackage:
        """Choose the package; its hours become the slot duration."""
        package = find_package(package_id=package_id)
        if package is None:
            raise ValidationError({"package": f"Unknown package: {package_id}"})
        self.package = package
        self.time_range = None
        self.step = WizardStep.DATE_TIME
        return package

    def available_ranges(self, day: DateLike) -> List[SlotProposal]:
        """Get every candidate for the chosen package on a date."""
        if self.package is None:
            raise EditorStateError("Select a package first")
        return self._resolver.resolve(day, self.package.hours)

    def select_date_time(self, day: DateLike, start: Union[str, int]) -> SlotProposal:
        """Pick a start time; taken ranges and unknown availability are refused."""
        self._require_step(WizardStep.DATE_TIME, WizardStep.CUSTOMER_DETAILS,
                           WizardStep.PAYMENT, WizardStep.CONFIRMATION)
        if self.package is None:
            raise EditorStateError("Select a package first")
        start_minutes = start if isinstance(start, int) else to_minutes(start)
        try:
            time_range = TimeRange(start_minutes, start_minutes + self.package.duration_minutes)
        except ValueError as e:
            raise ValidationError({"start": str(e)}) from e

        proposal = next(
            (p for p in self._resolver.resolve(day, self.package.hours) if p.time_range == time_range),
            None,
        )
        if proposal is None:
            raise ValidationError({"start": f"{time_range.start_12} is not an offered start time"})
        if proposal.is_conflicting:
            raise ConflictError(f"{time_range.format_time_range()} is already booked")
        self.date = date_key(day)
        self.time_range = time_range
        self.step = WizardStep.CUSTOMER_DETAILS
        return proposal

    def set_customer_details(self, details: CustomerDetails) -> None:
        """Store validated customer details."""
        self._require_step(WizardStep.CUSTOMER_DETAILS, WizardStep.PAYMENT, WizardStep.CONFIRMATION)
        errors = details.validate()
        if errors:
            raise ValidationError(errors)
        self.customer = details
        self.step = WizardStep.PAYMENT

    def choose_payment(self, payment_type: Union[str, PaymentType]) -> Decimal:
        """Choose full or down payment; returns the amount due now."""
        self._require_step(WizardStep.PAYMENT, WizardStep.CONFIRMATION)
        if isinstance(payment_type, str):
            payment_type = PaymentType.from_label(payment_type)
        self.payment_type = payment_type
        self.step = WizardStep.CONFIRMATION
        return self.amount_due

    @property
    def amount_due(self) -> Decimal:
        if self.package is None or self.payment_type is None:
            raise EditorStateError("Package and payment type are required")
        return amount_due(self.package.price, self.payment_type)

    def back(self) -> WizardStep:
        """Go back one step, keeping entered data."""
        if self.step is not WizardStep.PACKAGE:
            self.step = WizardStep(self.step.value - 1)
        return self.step

    def build_payload(self) -> Dict[str, Any]:
        """Build the public booking request."""
        self._require_step(WizardStep.CONFIRMATION)
        return {
            "bookingDate": self.date,
            "bookingTimeStart": self.time_range.start_24,
            "bookingTimeEnd": self.time_range.end_24,
            "bookingHours": self.package.hours,
            "packageName": self.package.name,
            "categoryName": self.package.category,
            "packagePrice": float(self.package.price),
            "guestName": self.customer.name.strip(),
            "guestEmail": self.customer.email.strip(),
            "guestPhone": self.customer.phone.strip(),
            "location": self.customer.location.strip(),
            "specialRequests": self.customer.special_requests,
            "paymentType": self.payment_type.value,
            "paymentMethod": PaymentMethod.GCASH.value,
            "amount": float(self.amount_due),
        }

    async def submit(self) -> CreatedBooking:
        """Re-check the chosen range against fresh data, then submit.

        The booking is created as pending and does not block the slot until
        an admin approves it.
        """
        payload = self.build_payload()
        await self._resolver.load()
        if self._resolver.check(self.date, self.time_range).is_conflicting:
            self.step = WizardStep.DATE_TIME
            raise ConflictError(f"{self.time_range.format_time_range()} was booked in the meantime")

        self.confirmation = await self._booking_repository.create(payload)
        logger.info(
            "Public booking request submitted",
            extra={"date_key": self.date, "booking_reference": self.confirmation.booking_reference},
        )
        return self.confirmation
