"""Payment value objects."""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum


DOWN_PAYMENT_RATIO = Decimal("0.5")


class PaymentType(Enum):
    """Payment completeness as stored by the backend."""
    FULL = "FULL"
    DOWNPAYMENT = "DOWNPAYMENT"

    @classmethod
    def from_label(cls, label: str) -> "PaymentType":
        """Map a form label to the backend enum.

        ``"Down Payment"`` maps to ``DOWNPAYMENT``; anything else is ``FULL``.
        """
        if label and label.strip().lower() in ("down payment", "downpayment"):
            return cls.DOWNPAYMENT
        return cls.FULL

    @property
    def label(self) -> str:
        return "Down Payment" if self is PaymentType.DOWNPAYMENT else "Full Payment"


class PaymentMethod(Enum):
    """Supported payment methods."""
    GCASH = "GCASH"
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"

    @classmethod
    def from_label(cls, label: str) -> "PaymentMethod":
        """Map a form label such as ``"Gcash"`` to the backend enum."""
        normalized = (label or "").strip().upper().replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unsupported payment method: {label!r}") from None


def amount_due(price: Decimal, payment_type: PaymentType) -> Decimal:
    """Amount owed up front for a package price."""
    price = Decimal(price)
    if payment_type is PaymentType.DOWNPAYMENT:
        return (price * DOWN_PAYMENT_RATIO).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return price.quantize(Decimal("0.01"))
