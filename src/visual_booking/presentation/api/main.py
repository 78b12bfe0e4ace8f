"""FastAPI main application module."""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from ...domain.entities.schedule_slot import ScheduleSlot
from ...domain.errors import (
    AvailabilityUnavailableError,
    BackendError,
    BackendUnavailableError,
    ConflictError,
    EditorStateError,
    NotAuthenticatedError,
    ValidationError,
)
from ...domain.value_objects.time_range import TimeRange
from ...infrastructure.editor_sessions import SessionNotFoundError
from ...infrastructure.logging import get_logger, log_business_rule_violation, setup_logging_from_env
from ...infrastructure.services import ServiceFactory, initialize_services, set_service_factory, shutdown_services
from .config import get_settings
from .middleware.logging import RequestResponseLoggingMiddleware
from .routes import approvals, availability, bookings, health, packages, schedule


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management."""
    # Startup
    setup_logging_from_env()
    logger.info("Starting Visual Booking Scheduling API")
    factory = getattr(app.state, "service_factory", None) or ServiceFactory.from_settings(get_settings())
    await initialize_services(factory)

    yield

    # Shutdown
    logger.info("Shutting down Visual Booking Scheduling API")
    await shutdown_services()


def _conflict_entry(item: Any) -> Dict[str, Any]:
    if isinstance(item, ScheduleSlot):
        return item.to_dict()
    if isinstance(item, TimeRange):
        return {"start": item.start_24, "end": item.end_24}
    return {"value": str(item)}


def add_exception_handlers(app: FastAPI) -> None:
    """Add custom exception handlers to the FastAPI application."""

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError):
        """Handle calls made without a bearer token."""
        logger.warning(f"Unauthenticated request on {request.url.path}")
        return JSONResponse(
            status_code=401,
            content={"detail": exc.message, "type": "not_authenticated"},
            headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        """Handle field validation errors raised before any backend call."""
        logger.warning(f"Validation error on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=422,
            content={"detail": exc.message, "type": "validation_error", "errors": exc.errors}
        )

    @app.exception_handler(ConflictError)
    async def conflict_error_handler(request: Request, exc: ConflictError):
        """Handle overlaps; the client may repeat the call with confirm=true."""
        log_business_rule_violation(logger, "no_overlap", exc.message, request_path=request.url.path)
        return JSONResponse(
            status_code=409,
            content={
                "detail": exc.message,
                "type": "conflict",
                "conflicts": [_conflict_entry(c) for c in exc.conflicts],
                "confirmable": True
            }
        )

    @app.exception_handler(EditorStateError)
    async def editor_state_error_handler(request: Request, exc: EditorStateError):
        """Handle operations the editor cannot perform in its current state."""
        logger.warning(f"Editor state error on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=409,
            content={"detail": exc.message, "type": "editor_state_error", "confirmable": False}
        )

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
        """Handle unknown or expired editor sessions."""
        return JSONResponse(status_code=404, content={"detail": str(exc), "type": "session_not_found"})

    @app.exception_handler(AvailabilityUnavailableError)
    async def availability_error_handler(request: Request, exc: AvailabilityUnavailableError):
        """Handle missing booked-slot data; nothing is offered as free."""
        logger.error(f"Availability unavailable on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=503,
            content={"detail": exc.message, "type": "availability_unavailable"}
        )

    @app.exception_handler(BackendError)
    async def backend_error_handler(request: Request, exc: BackendError):
        """Surface the backend's message verbatim."""
        logger.error(f"Backend error on {request.url.path}: {exc.message}", extra={"backend_status": exc.status_code})
        if exc.status_code == 401:
            return JSONResponse(
                status_code=401,
                content={"detail": exc.message, "type": "not_authenticated"},
                headers={"WWW-Authenticate": "Bearer"}
            )
        error_type = "backend_unavailable" if isinstance(exc, BackendUnavailableError) else "backend_error"
        return JSONResponse(
            status_code=502,
            content={"detail": exc.message, "type": error_type, "backend_status": exc.status_code}
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        """Handle validation errors from business logic."""
        logger.warning(f"Validation error on {request.url.path}: {str(exc)}")
        return JSONResponse(
            status_code=400,
            content={
                "detail": str(exc),
                "type": "validation_error"
            }
        )


def create_app(service_factory: Optional[ServiceFactory] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Visual Booking Scheduling API",
        description="Availability, schedule editing and booking approval for photo and video sessions",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    if service_factory is not None:
        app.state.service_factory = service_factory
        set_service_factory(service_factory)

    # Add custom exception handlers
    add_exception_handlers(app)

    app.add_middleware(RequestResponseLoggingMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
    )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(
        packages.router,
        prefix=f"{settings.api_prefix}/packages",
        tags=["packages"]
    )
    app.include_router(
        availability.router,
        prefix=f"{settings.api_prefix}/availability",
        tags=["availability"]
    )
    app.include_router(
        bookings.router,
        prefix=f"{settings.api_prefix}/bookings",
        tags=["bookings"]
    )
    app.include_router(
        approvals.router,
        prefix=f"{settings.api_prefix}/admin/bookings",
        tags=["approvals"]
    )
    app.include_router(
        schedule.router,
        prefix=f"{settings.api_prefix}/admin/schedule/sessions",
        tags=["schedule"]
    )

    return app


# Create app instance
app = create_app()
