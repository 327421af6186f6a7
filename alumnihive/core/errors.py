"""
Domain errors raised by the service layer.

Routes translate these into HTTP responses with to_http_exception.
"""
from fastapi import HTTPException


class AlumniHiveError(Exception):
    """Base class for service-level failures."""

    status_code = 500

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_detail(self) -> dict:
        detail = {"error": self.message}
        detail.update(self.extra)
        return detail


class ValidationError(AlumniHiveError):
    status_code = 400


class NotFoundError(AlumniHiveError):
    status_code = 404


class PermissionDeniedError(AlumniHiveError):
    status_code = 403


class ConflictError(AlumniHiveError):
    """Duplicate or already-active state (reported as 400 to clients)."""
    status_code = 400


class SignatureError(AlumniHiveError):
    status_code = 400


def to_http_exception(exc: AlumniHiveError):
    """Map a domain error to the HTTPException a route should raise."""
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())
