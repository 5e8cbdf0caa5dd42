"""
Driver matching service.

This module handles:
    - Ranking kijiwes by distance from a pickup point
    - Claiming the first available queued driver
    - Offer and no-driver notifications
"""

from .dispatcher import RideDispatcher, DispatchResult, dispatch_ride_request

__all__ = [
    "RideDispatcher",
    "DispatchResult",
    "dispatch_ride_request",
]
