"""Domain errors raised by the scheduling services.

Routes turn these into ``HTTPException`` using ``status_code`` and ``detail``.
"""

from contextlib import contextmanager

from fastapi import status
from sqlalchemy import exc as sa_exc


class SchedulingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Scheduling error.'

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(SchedulingError):
    """Malformed input, rejected before any I/O."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid request.'


class NotFoundError(SchedulingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'


class ConflictError(SchedulingError):
    """The requested slot or transition clashes with existing booking state."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Request conflicts with existing booking state.'


class UpstreamTimeoutError(SchedulingError):
    """A collaborator did not answer in time. Retryable; never means "no data"."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_detail = 'Upstream service timed out.'


class UpstreamUnavailableError(SchedulingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Upstream service unavailable.'


@contextmanager
def database_read(operation: str):
    """Surface database timeouts and outages as upstream errors for ``operation``."""
    try:
        yield
    except sa_exc.TimeoutError as exc:
        raise UpstreamTimeoutError(f'Timed out while trying to {operation}.') from exc
    except sa_exc.OperationalError as exc:
        message = str(exc.orig).lower()
        if 'timeout' in message or 'canceling statement' in message:
            raise UpstreamTimeoutError(f'Timed out while trying to {operation}.') from exc
        raise UpstreamUnavailableError(f'Database unavailable while trying to {operation}.') from exc
