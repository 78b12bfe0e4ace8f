"""Service package catalog."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional


@dataclass(frozen=True)
class ServicePackage:
    """A bookable photography or videography package."""

    id: int
    category: str
    name: str
    hours: int
    price: Decimal
    description: str = ""

    def __post_init__(self) -> None:
        """Validate package data."""
        if self.hours < 1:
            raise ValueError("Package duration must be at least 1 hour")
        if self.price < 0:
            raise ValueError("Package price cannot be negative")

    @property
    def duration_minutes(self) -> int:
        return self.hours * 60


PHOTOGRAPHY = "Photography"
VIDEOGRAPHY = "Videography"
COMBO = "Combo Package"

CATALOG: List[ServicePackage] = [
    ServicePackage(1, PHOTOGRAPHY, "Intimate Session", 3, Decimal("3000"),
                   "Perfect For Individuals & Couples Wanting Professional Portraits."),
    ServicePackage(2, PHOTOGRAPHY, "Pre-Photoshoot", 4, Decimal("3500"),
                   "Coverage For Your Special Day With All The Essentials."),
    ServicePackage(3, PHOTOGRAPHY, "Event Coverage", 5, Decimal("4500"),
                   "Ideal For Families Wanting To Capture Special Moments Together."),
    ServicePackage(4, PHOTOGRAPHY, "Wedding", 7, Decimal("5000"),
                   "Coverage For Your Special Day With All The Essentials."),
    ServicePackage(5, PHOTOGRAPHY, "Wedding Premium", 10, Decimal("11000"),
                   "Comprehensive Coverage For Your Wedding Day."),
    ServicePackage(6, VIDEOGRAPHY, "Event Highlight", 4, Decimal("7000"),
                   "Perfect For Capturing Highlights Of Your Special Event."),
    ServicePackage(7, VIDEOGRAPHY, "Same Day Edit", 6, Decimal("12000"),
                   "Professional Video For Your Business & Product"),
    ServicePackage(8, VIDEOGRAPHY, "Wedding Film", 8, Decimal("15000"),
                   "Cinematic Coverage Of Your Wedding Day."),
    ServicePackage(9, COMBO, "Pre-Shoot Combo", 6, Decimal("10000"),
                   "Full Photo & Video Coverage For Your Special Event"),
    ServicePackage(10, COMBO, "Event Complete", 8, Decimal("13000"),
                   "Full Photo & Video Coverage For Your Special Event."),
    ServicePackage(11, COMBO, "Wedding Complete", 10, Decimal("35000"),
                   "The Ultimate Wedding Package With Photo & Video Coverage."),
]


def packages_by_category() -> Dict[str, List[ServicePackage]]:
    """Group the catalog by category, keeping catalog order."""
    grouped: Dict[str, List[ServicePackage]] = {}
    for package in CATALOG:
        grouped.setdefault(package.category, []).append(package)
    return grouped


def find_package(package_id: Optional[int] = None, name: Optional[str] = None,
                 category: Optional[str] = None) -> Optional[ServicePackage]:
    """Look a package up by id, or by name within an optional category."""
    for package in CATALOG:
        if package_id is not None and package.id == package_id:
            return package
        if name is not None and package.name == name and category in (None, package.category):
            return package
    return None
