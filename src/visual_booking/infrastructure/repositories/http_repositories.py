"""httpx-backed repository implementations against the booking REST backend."""

import time
from typing import Any, Dict, List, Optional

import httpx

from ...application.ports.repositories import (
    BookingDetails,
    BookingRepository,
    CreatedBooking,
    UnavailableRangeRepository,
)
from ...domain.entities.booking import Booking, BookingStatus
from ...domain.entities.schedule_slot import UnavailableRange
from ...domain.errors import BackendError, BackendUnavailableError
from ...domain.value_objects.auth import ClientContext
from ...domain.value_objects.time_range import TimeRange
from ..logging import get_correlation_id, get_logger, log_backend_call


logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class BackendClient:
    """Thin async client for the backend's ``{success, message, data}`` envelope.

    Admin calls check the bearer token before anything is sent. Transport
    failures become :class:`BackendUnavailableError` carrying the raw reason;
    a ``success: false`` body or an HTTP error status becomes
    :class:`BackendError` carrying the backend's message verbatim.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    def _headers(self, context: Optional[ClientContext], authenticated: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if authenticated:
            headers.update(context.auth_headers())
        correlation_id = (context.correlation_id if context else None) or get_correlation_id()
        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id
        return headers

    async def request(
        self,
        method: str,
        path: str,
        context: Optional[ClientContext] = None,
        json: Optional[Dict[str, Any]] = None,
        authenticated: bool = True
    ) -> Dict[str, Any]:
        """Send a request and unwrap the response envelope."""
        if authenticated:
            if context is None:
                context = ClientContext.anonymous()
            context.require_token()
        headers = self._headers(context, authenticated)

        started = time.perf_counter()
        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            duration_ms = (time.perf_counter() - started) * 1000
            log_backend_call(logger, method, path, None, duration_ms, error=str(e))
            raise BackendUnavailableError(str(e) or type(e).__name__) from e

        duration_ms = (time.perf_counter() - started) * 1000
        log_backend_call(logger, method, path, response.status_code, duration_ms)
        return self._unwrap(response)

    @staticmethod
    def _unwrap(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            if response.is_error:
                raise BackendError(response.text or response.reason_phrase, response.status_code)
            return {"success": True, "data": body}

        if response.is_error or body.get("success") is False:
            message = body.get("message") or body.get("error") or response.reason_phrase
            raise BackendError(message, response.status_code)
        return body


def _data(body: Dict[str, Any]) -> Any:
    return body.get("data") or {}


def _items(body: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """Pull a list out of ``data``, whether it is wrapped or bare."""
    data = body.get("data")
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return data.get(key) or []
    return []


def _parse_bookings(items: List[Dict[str, Any]]) -> List[Booking]:
    bookings = []
    for item in items:
        try:
            bookings.append(Booking.from_payload(item))
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Malformed booking in backend response: {e}") from e
    return bookings


def _created(body: Dict[str, Any]) -> CreatedBooking:
    data = _data(body)
    if not isinstance(data, dict):
        data = {}
    booking = data.get("booking") if isinstance(data.get("booking"), dict) else data
    return CreatedBooking(
        booking_id=booking.get("bookingId"),
        booking_reference=booking.get("bookingReference"),
        data=data,
    )


class HttpBookingRepository(BookingRepository):
    """Booking endpoints over HTTP."""

    def __init__(self, client: BackendClient):
        self._client = client

    async def find_by_month(self, context: ClientContext, year: int, month: int) -> List[Booking]:
        body = await self._client.request("GET", f"/api/bookings/calendar/month/{year}/{month}", context)
        return _parse_bookings(_items(body, "bookings"))

    async def find_pending(self, context: ClientContext) -> List[Booking]:
        body = await self._client.request("GET", "/api/bookings/pending", context)
        return _parse_bookings(_items(body, "bookings"))

    async def find_booked_slots(self) -> List[Booking]:
        """Public slot list; entries without a status are taken as confirmed."""
        body = await self._client.request("GET", "/api/bookings/booked-slots", authenticated=False)
        items = []
        for item in _items(body, "bookings"):
            item = dict(item)
            item.setdefault("bookingStatus", BookingStatus.CONFIRMED.value)
            items.append(item)
        return _parse_bookings(items)

    async def get_details(self, context: ClientContext, booking_id: int) -> BookingDetails:
        body = await self._client.request("GET", f"/api/bookings/{booking_id}/details", context)
        data = _data(body)
        booking = _parse_bookings([data.get("booking") or {}])[0]
        return BookingDetails(
            booking=booking,
            payment=data.get("payment"),
            payment_proof_url=data.get("paymentProofUrl"),
        )

    async def approve(self, context: ClientContext, booking_id: int, admin_notes: str = "") -> str:
        body = await self._client.request(
            "PUT", f"/api/bookings/{booking_id}/approve", context, json={"adminNotes": admin_notes}
        )
        return body.get("message") or "Booking approved"

    async def reject(self, context: ClientContext, booking_id: int, reason: str) -> str:
        body = await self._client.request(
            "PUT", f"/api/bookings/{booking_id}/reject", context, json={"reason": reason}
        )
        return body.get("message") or "Booking rejected"

    async def delete(self, context: ClientContext, booking_id: int) -> str:
        body = await self._client.request("DELETE", f"/api/bookings/{booking_id}", context)
        return body.get("message") or "Booking deleted"

    async def update_time_range(self, context: ClientContext, booking_id: int, time_range: TimeRange) -> str:
        payload = {
            "bookingId": booking_id,
            "startTime": time_range.start_24,
            "endTime": time_range.end_24,
        }
        body = await self._client.request("PUT", f"/api/bookings/{booking_id}/time-range", context, json=payload)
        return body.get("message") or "Booking time updated"

    async def create_manual(self, context: ClientContext, payload: Dict[str, Any]) -> CreatedBooking:
        body = await self._client.request("POST", "/api/bookings/manual", context, json=payload)
        return _created(body)

    async def create(self, payload: Dict[str, Any]) -> CreatedBooking:
        body = await self._client.request("POST", "/api/bookings", json=payload, authenticated=False)
        return _created(body)


class HttpUnavailableRangeRepository(UnavailableRangeRepository):
    """Unavailable-range endpoints over HTTP."""

    def __init__(self, client: BackendClient):
        self._client = client

    async def find_by_date(self, context: ClientContext, date_key: str) -> List[UnavailableRange]:
        body = await self._client.request("GET", f"/api/schedules/unavailable/{date_key}", context)
        try:
            return [
                UnavailableRange.from_payload(item, fallback_date=date_key)
                for item in _items(body, "unavailableRanges")
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise BackendError(f"Malformed unavailable range in backend response: {e}") from e

    async def replace_for_date(self, context: ClientContext, date_key: str, ranges: List[TimeRange]) -> str:
        payload = {
            "date": date_key,
            "unavailableRanges": [UnavailableRange(date_key, r).to_payload() for r in ranges],
        }
        body = await self._client.request("POST", "/api/schedules/unavailable", context, json=payload)
        return body.get("message") or "Unavailable ranges saved"
