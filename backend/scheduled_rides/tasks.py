"""Celery tasks for the scheduled-ride sweep."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def process_scheduled_rides_task():
    """
    Periodic sweep run by Celery beat every five minutes.

    Activates due scheduled rides and generates recurring instances.
    Failures are logged; the next tick retries.
    """
    from services.scheduling import process_scheduled_rides

    try:
        result = process_scheduled_rides()
    except Exception:
        logger.exception("Error processing scheduled rides")
        return None

    return {
        "activated": result.activated,
        "generated": result.generated,
        "masters_advanced": result.masters_advanced,
    }
