"""
Ride management service - Driver-driven ride lifecycle.

This module handles:
    - Accepting/declining offered rides
    - Arrival, start and completion (with final fare)
    - Cancellation by the driver
    - Rating the customer
"""

from .ride_actions import (
    RideActionHandler,
    RideActionRequest,
    RideActionResult,
    handle_driver_ride_action,
    ACTION_ACCEPT,
    ACTION_DECLINE,
    ACTION_ARRIVED,
    ACTION_START,
    ACTION_COMPLETE,
    ACTION_CANCEL,
    ACTION_RATE,
)

from .exceptions import (
    RideNotFoundError,
    NotADriverError,
    UnknownRideActionError,
    RideActionNotAllowedError,
)

__all__ = [
    # Lifecycle operations
    "RideActionHandler",
    "RideActionRequest",
    "RideActionResult",
    "handle_driver_ride_action",
    # Action names
    "ACTION_ACCEPT",
    "ACTION_DECLINE",
    "ACTION_ARRIVED",
    "ACTION_START",
    "ACTION_COMPLETE",
    "ACTION_CANCEL",
    "ACTION_RATE",
    # Exceptions
    "RideNotFoundError",
    "NotADriverError",
    "UnknownRideActionError",
    "RideActionNotAllowedError",
]
