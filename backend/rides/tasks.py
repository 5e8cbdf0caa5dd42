"""Celery tasks for ride-related background processing."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def match_ride_request_task(ride_id: int):
    """
    Dispatch a newly created ride request.

    Scheduled after the ride's creation commits. The dispatcher records
    failures on the ride itself, so there is nothing to retry here.
    """
    from services.matching import dispatch_ride_request

    result = dispatch_ride_request(ride_id)
    return {
        "ride_id": result.ride_id,
        "status": result.status,
        "driver_id": result.driver_id,
        "kijiwe_id": result.kijiwe_id,
    }


@shared_task
def refresh_ride_projections_task(user_id: int):
    """Copy a user's current display fields onto their active rides."""
    from services.projections import refresh_ride_projections

    try:
        updated = refresh_ride_projections(user_id)
    except Exception:
        logger.exception("Error refreshing ride projections for user %s", user_id)
        return 0
    return updated
