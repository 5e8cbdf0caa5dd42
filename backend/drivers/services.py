"""
Driver availability.

Going online puts the driver in a kijiwe queue; going offline takes them
out of every queue. Neither is allowed while the driver is bound to a ride.
"""

import logging
from typing import Optional

from django.db import transaction

from common.exceptions import FailedPreconditionError, InvalidArgumentError
from drivers.models import DriverProfile
from kijiwe.models import Kijiwe
from kijiwe.services import join_queue, leave_queues
from rides.models import RideRequest

logger = logging.getLogger(__name__)


def _ensure_not_busy(profile: DriverProfile):
    if profile.status in DriverProfile.BUSY_STATUSES:
        raise FailedPreconditionError(
            f"Cannot change availability while status is '{profile.status}'."
        )


@transaction.atomic
def go_online(profile: DriverProfile, kijiwe: Optional[Kijiwe] = None) -> DriverProfile:
    """
    Mark a driver as waiting for rides at a kijiwe.

    Args:
        profile: DriverProfile of the driver
        kijiwe: Kijiwe to queue at; defaults to the driver's home kijiwe

    Returns:
        The updated profile
    """
    profile = DriverProfile.objects.select_for_update().get(pk=profile.pk)
    _ensure_not_busy(profile)

    kijiwe = kijiwe or profile.kijiwe
    if kijiwe is None:
        raise InvalidArgumentError("A kijiwe is required to go online.")

    profile.is_online = True
    profile.status = DriverProfile.STATUS_WAITING
    profile.kijiwe = kijiwe
    profile.save(update_fields=["is_online", "status", "kijiwe"])
    join_queue(profile.user, kijiwe)

    logger.info("Driver %s is online at kijiwe %s", profile.user_id, kijiwe.pk)
    return profile


@transaction.atomic
def go_offline(profile: DriverProfile) -> DriverProfile:
    """Mark a driver offline and remove them from every queue."""
    profile = DriverProfile.objects.select_for_update().get(pk=profile.pk)
    _ensure_not_busy(profile)

    profile.is_online = False
    profile.status = DriverProfile.STATUS_OFFLINE
    profile.save(update_fields=["is_online", "status"])
    leave_queues(profile.user)

    logger.info("Driver %s is offline", profile.user_id)
    return profile


def get_current_driver_ride(driver) -> Optional[RideRequest]:
    """Ride the driver is currently bound to, if any."""
    return (
        RideRequest.objects
        .filter(driver=driver, status__in=RideRequest.ACTIVE_STATUSES)
        .order_by("-requested_at")
        .first()
    )
