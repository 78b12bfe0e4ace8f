"""Dependency injection and service factory."""

from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

import httpx

from ..application.ports.repositories import BookingRepository, UnavailableRangeRepository
from ..application.services.approval_service import ApprovalService
from ..application.services.availability_service import AvailabilityResolver
from ..application.services.booking_wizard import BookingWizard
from ..application.services.manual_booking_service import ManualBookingCreator
from ..application.services.schedule_editor import DEFAULT_WINDOW, ScheduleEditor
from ..domain.value_objects.auth import ClientContext
from ..domain.value_objects.time_range import DEFAULT_MINIMUM_DURATION_MINUTES, TimeRange
from .editor_sessions import EditorSessionRegistry
from .logging import get_logger
from .repositories.http_repositories import (
    DEFAULT_TIMEOUT_SECONDS,
    BackendClient,
    HttpBookingRepository,
    HttpUnavailableRangeRepository,
)
from .repositories.memory_repositories import (
    InMemoryBookingRepository,
    InMemoryUnavailableRangeRepository,
)


logger = get_logger(__name__)

BACKEND_MODES = ("http", "memory")


class ServiceFactory:
    """Factory for creating application services with proper dependencies."""

    def __init__(
        self,
        backend_mode: str = "http",
        backend_base_url: str = "http://localhost:8080",
        backend_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        default_window: TimeRange = DEFAULT_WINDOW,
        minimum_duration_minutes: int = DEFAULT_MINIMUM_DURATION_MINUTES,
        session_idle_timeout_seconds: float = 3600,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if backend_mode not in BACKEND_MODES:
            raise ValueError(f"backend_mode must be one of {BACKEND_MODES}, got {backend_mode!r}")
        self.backend_mode = backend_mode
        self.default_window = default_window
        self.minimum_duration_minutes = minimum_duration_minutes
        self.sessions = EditorSessionRegistry(session_idle_timeout_seconds)
        self._client: Optional[BackendClient] = None

        if backend_mode == "http":
            self._client = BackendClient(backend_base_url, backend_timeout_seconds, transport=transport)
            self.booking_repository: BookingRepository = HttpBookingRepository(self._client)
            self.unavailable_repository: UnavailableRangeRepository = HttpUnavailableRangeRepository(self._client)
        else:
            self.booking_repository = InMemoryBookingRepository()
            self.unavailable_repository = InMemoryUnavailableRangeRepository()

    @classmethod
    def from_settings(cls, settings) -> "ServiceFactory":
        """Create the factory described by application settings."""
        return cls(
            backend_mode=settings.backend_mode,
            backend_base_url=settings.backend_base_url,
            backend_timeout_seconds=settings.backend_timeout_seconds,
            default_window=settings.default_window,
            minimum_duration_minutes=settings.minimum_duration_minutes,
            session_idle_timeout_seconds=settings.session_idle_timeout_seconds,
        )

    async def initialize(self):
        """Initialize the service factory."""
        logger.info(f"Using {self.backend_mode} booking backend")

    async def shutdown(self):
        """Shutdown the service factory."""
        if self._client is not None:
            await self._client.aclose()

    def schedule_editor(self, context: ClientContext) -> ScheduleEditor:
        """Create an unloaded editor bound to the caller's credentials."""
        return ScheduleEditor(
            booking_repository=self.booking_repository,
            unavailable_repository=self.unavailable_repository,
            context=context,
            default_window=self.default_window,
            minimum_duration_minutes=self.minimum_duration_minutes,
        )

    def manual_booking_creator(self) -> ManualBookingCreator:
        return ManualBookingCreator(self.booking_repository)

    def approval_service(self) -> ApprovalService:
        return ApprovalService(self.booking_repository)

    @asynccontextmanager
    async def get_availability_resolver(self) -> AsyncGenerator[AvailabilityResolver, None]:
        """Get a resolver loaded with the current booked slots."""
        resolver = AvailabilityResolver(self.booking_repository)
        await resolver.load()
        yield resolver

    @asynccontextmanager
    async def get_booking_wizard(self) -> AsyncGenerator[BookingWizard, None]:
        """Get a booking wizard backed by a freshly loaded resolver."""
        async with self.get_availability_resolver() as resolver:
            yield BookingWizard(resolver, self.booking_repository)


# Global service factory instance
_service_factory: Optional[ServiceFactory] = None


def get_service_factory() -> ServiceFactory:
    """Get the global service factory, building it from settings on first use."""
    global _service_factory

    if _service_factory is None:
        from ..presentation.api.config import get_settings
        _service_factory = ServiceFactory.from_settings(get_settings())

    return _service_factory


def set_service_factory(factory: Optional[ServiceFactory]) -> None:
    """Replace the global service factory (used at startup and in tests)."""
    global _service_factory
    _service_factory = factory


async def initialize_services(factory: Optional[ServiceFactory] = None):
    """Initialize application services."""
    if factory is not None:
        set_service_factory(factory)
    await get_service_factory().initialize()


async def shutdown_services():
    """Shutdown application services."""
    factory = get_service_factory()
    await factory.shutdown()
