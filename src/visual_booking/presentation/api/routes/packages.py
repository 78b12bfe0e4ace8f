"""Service package catalog endpoints."""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from ....domain.value_objects.service_package import CATALOG, find_package
from ..schemas.booking_schemas import PackageResponse

router = APIRouter()


@router.get("")
async def list_packages(
    category: Optional[str] = Query(None, description="Photography, Videography or Combo Package")
) -> List[PackageResponse]:
    """List bookable packages, optionally for one category."""
    packages = [
        p for p in CATALOG
        if category is None or p.category.lower() == category.strip().lower()
    ]
    return [PackageResponse.from_package(p) for p in packages]


@router.get("/{package_id}")
async def get_package(package_id: int) -> PackageResponse:
    """Get one package by id."""
    package = find_package(package_id=package_id)
    if package is None:
        raise HTTPException(status_code=404, detail=f"Package not found: {package_id}")
    return PackageResponse.from_package(package)
