from __future__ import annotations

from fastapi import status


CONFLICT_MESSAGE = "Karyawan sudah memiliki kegiatan di waktu yang sama"


class AgendaError(Exception):
    """Base class for errors that are reported to the client as ``{"error": message}``."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidRequestError(AgendaError):
    """Request parameters that are well-formed but unusable (bad filter, unknown reference)."""


class UnauthenticatedError(AgendaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class InvalidCredentialsError(AgendaError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Email atau password tidak valid"


class ActivityNotFoundError(AgendaError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Activity not found"


class ActivityConflictError(AgendaError):
    """The employee already has an activity in the requested slot."""

    message = CONFLICT_MESSAGE


class ActivityLockedError(AgendaError):
    """Superseded activities are kept for history and cannot change anymore."""

    message = "Kegiatan sudah dijadwalkan ulang dan tidak dapat diubah"


class RescheduleFailedError(AgendaError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"
