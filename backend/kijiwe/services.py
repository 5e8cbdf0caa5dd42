"""
Driver queue operations for kijiwe staging areas.

A driver sits in at most one queue (enforced by the one-to-one
``QueueEntry.driver``). Queues are walked oldest entry first.
"""

import logging
from typing import List, Optional

from kijiwe.models import Kijiwe, QueueEntry

logger = logging.getLogger(__name__)


def queue_driver_ids(kijiwe: Kijiwe) -> List[int]:
    """Driver user ids waiting at a kijiwe, in queue order."""
    return list(
        QueueEntry.objects
        .filter(kijiwe=kijiwe)
        .order_by('joined_at', 'id')
        .values_list('driver_id', flat=True)
    )


def join_queue(driver, kijiwe: Kijiwe) -> QueueEntry:
    """
    Put a driver at the back of a kijiwe queue.

    A driver already waiting at this kijiwe keeps their place; a driver
    waiting elsewhere is moved.
    """
    entry = QueueEntry.objects.filter(driver=driver).first()
    if entry is not None:
        if entry.kijiwe_id == kijiwe.id:
            return entry
        entry.delete()

    entry = QueueEntry.objects.create(driver=driver, kijiwe=kijiwe)
    logger.info("Driver %s joined the queue at kijiwe %s", driver.pk, kijiwe.pk)
    return entry


def leave_queues(driver) -> int:
    """Remove a driver from every queue; returns the number of entries removed."""
    removed, _ = QueueEntry.objects.filter(driver=driver).delete()
    if removed:
        logger.info("Driver %s left the kijiwe queue", driver.pk)
    return removed


def return_to_queue(driver, kijiwe_id: Optional[int]) -> Optional[QueueEntry]:
    """Append a driver who has finished a ride to the given kijiwe's queue."""
    if kijiwe_id is None:
        logger.warning("Driver %s has no kijiwe to return to", driver.pk)
        return None

    kijiwe = Kijiwe.objects.filter(id=kijiwe_id).first()
    if kijiwe is None:
        logger.warning("Kijiwe %s no longer exists; driver %s not re-queued", kijiwe_id, driver.pk)
        return None
    return join_queue(driver, kijiwe)
