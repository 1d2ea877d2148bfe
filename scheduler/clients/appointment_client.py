"""HTTP client for a remote appointment service's booked-slot endpoint."""

import logging
from datetime import date

import httpx
import pydantic

from scheduler.core.errors import (
    NotFoundError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
    ValidationError,
)
from scheduler.schemas.availability import BookedSlot

logger = logging.getLogger(__name__)

BOOKED_SLOTS_PATH = '/appointments/booked-slots'


def build_http_client(base_url: str, timeout_seconds: float) -> httpx.Client:
    return httpx.Client(base_url=base_url, timeout=httpx.Timeout(timeout_seconds))


class HttpAppointmentClient:
    """Fetches booked (date, time) pairs over HTTP.

    A timeout is reported as ``UpstreamTimeoutError`` and never as an empty
    booking list.
    """

    def __init__(self, http: httpx.Client) -> None:
        self.http = http

    def get_booked_slots(self, doctor_id: str, start_date: date, end_date: date) -> list[BookedSlot]:
        params = {
            'doctor_id': doctor_id,
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
        }

        try:
            response = self.http.get(BOOKED_SLOTS_PATH, params=params)
        except httpx.TimeoutException as exc:
            logger.warning('Booked slot lookup timed out for doctor %s', doctor_id)
            raise UpstreamTimeoutError('Appointment service timed out.') from exc
        except httpx.TransportError as exc:
            logger.warning('Appointment service unreachable: %s', exc)
            raise UpstreamUnavailableError('Appointment service unavailable.') from exc

        if response.status_code in (400, 422):
            raise ValidationError(_error_detail(response, 'Appointment service rejected the request.'))
        if response.status_code == 404:
            raise NotFoundError(_error_detail(response, 'Doctor not found.'))
        if response.status_code >= 400:
            logger.warning('Appointment service returned %s for doctor %s', response.status_code, doctor_id)
            raise UpstreamUnavailableError(f'Appointment service returned {response.status_code}.')

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError('Appointment service returned invalid JSON.') from exc

        try:
            return [BookedSlot.model_validate(item) for item in payload]
        except (pydantic.ValidationError, TypeError) as exc:
            raise UpstreamUnavailableError('Appointment service returned malformed booked slots.') from exc

    def close(self) -> None:
        self.http.close()


def _error_detail(response: httpx.Response, fallback: str) -> str:
    try:
        detail = response.json().get('detail')
    except (ValueError, AttributeError):
        return fallback
    return detail if isinstance(detail, str) else fallback
