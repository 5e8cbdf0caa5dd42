"""
Classified errors raised by the service layer.

Every error carries a stable ``code`` that clients switch on and the HTTP
status used when it reaches a view. ``api_exception_handler`` is wired in
as the DRF exception handler so views can simply let these propagate.
"""

import logging
from typing import Any, Optional

from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for classified service errors."""
    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "", details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_dict(self) -> dict:
        payload = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = self.details
        return payload


class UnauthenticatedError(ServiceError):
    """Raised when there is no caller identity."""
    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(ServiceError):
    """Raised when the caller lacks the required role or ownership."""
    code = "permission-denied"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidArgumentError(ServiceError):
    """Raised for malformed or missing fields, bad ratings and unknown actions."""
    code = "invalid-argument"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ServiceError):
    """Raised when a referenced ride or user does not exist."""
    code = "not-found"
    status_code = status.HTTP_404_NOT_FOUND


class FailedPreconditionError(ServiceError):
    """Raised when a state machine guard is violated."""
    code = "failed-precondition"
    status_code = status.HTTP_409_CONFLICT


class InternalError(ServiceError):
    """Unexpected downstream failure; ``details`` holds the original message."""
    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _translate(exc: Exception) -> Optional[ServiceError]:
    if isinstance(exc, ServiceError):
        return exc
    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        return UnauthenticatedError(str(exc.detail))
    if isinstance(exc, drf_exceptions.PermissionDenied):
        return PermissionDeniedError(str(exc.detail))
    if isinstance(exc, drf_exceptions.ValidationError):
        return InvalidArgumentError("Invalid request data.", details=exc.detail)
    if isinstance(exc, (Http404, drf_exceptions.NotFound)):
        return NotFoundError(str(exc) or "Not found.")
    return None


def api_exception_handler(exc, context):
    """Render classified errors as ``{success, error, message[, details]}``."""
    error = _translate(exc)
    if error is None:
        return exception_handler(exc, context)

    if error.status_code >= 500:
        logger.error("Internal error in %s: %s", context.get("view"), error.details or error.message)
    return Response(error.as_dict(), status=error.status_code)
