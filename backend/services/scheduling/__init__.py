"""
Scheduling service - Scheduled and recurring rides.

This module handles:
    - The periodic sweep that activates due rides
    - Expanding recurring templates into dated instances
    - Owner edits and deletes
"""

from .processor import (
    ScheduledRideProcessor,
    SweepResult,
    process_scheduled_rides,
)

from .management import (
    manage_scheduled_ride,
    ACTION_EDIT,
    ACTION_DELETE,
)

__all__ = [
    # Sweep
    "ScheduledRideProcessor",
    "SweepResult",
    "process_scheduled_rides",
    # Owner operations
    "manage_scheduled_ride",
    "ACTION_EDIT",
    "ACTION_DELETE",
]
