"""Custom exceptions for ride management."""

from common.exceptions import (
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)


class RideNotFoundError(NotFoundError):
    """Raised when a ride cannot be found."""
    pass


class NotADriverError(PermissionDeniedError):
    """Raised when the caller is not a driver with a driver profile."""
    pass


class UnknownRideActionError(InvalidArgumentError):
    """Raised for an action name the handler does not know."""
    pass


class RideActionNotAllowedError(FailedPreconditionError):
    """Raised when the ride's status or assigned driver forbids the action."""
    pass
