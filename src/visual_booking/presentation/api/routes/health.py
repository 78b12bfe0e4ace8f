"""Health check endpoints."""

from fastapi import APIRouter

from ....infrastructure.services import get_service_factory

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "visual-booking",
        "backend_mode": get_service_factory().backend_mode,
    }


@router.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Visual Booking Scheduling API", "version": "0.1.0"}
