"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP/WebSocket layer.

Modules:
    - fares: Fare estimates and final fares
    - projections: Customer/driver display fields copied onto rides
    - matching: Kijiwe dispatch of new ride requests
    - ride_management: Driver ride actions
    - scheduling: Scheduled and recurring rides
"""

# Expose commonly used functions at package level
from .fares import estimate_fare, finalize_fare, load_fare_settings
from .matching import RideDispatcher, dispatch_ride_request
from .ride_management import (
    RideActionHandler,
    RideActionRequest,
    handle_driver_ride_action,
)
from .scheduling import ScheduledRideProcessor, manage_scheduled_ride

__all__ = [
    # Fares
    "estimate_fare",
    "finalize_fare",
    "load_fare_settings",
    # Matching
    "RideDispatcher",
    "dispatch_ride_request",
    # Ride management
    "RideActionHandler",
    "RideActionRequest",
    "handle_driver_ride_action",
    # Scheduling
    "ScheduledRideProcessor",
    "manage_scheduled_ride",
]
