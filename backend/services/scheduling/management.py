"""Owner-initiated edits and deletes of scheduled rides."""

import logging
from typing import Any, Mapping, Optional

from django.db import DatabaseError, transaction

from common.exceptions import (
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    UnauthenticatedError,
)
from scheduled_rides.models import ScheduledRide

logger = logging.getLogger(__name__)

ACTION_EDIT = "edit"
ACTION_DELETE = "delete"


def manage_scheduled_ride(caller, action: Optional[str], ride_id: Any,
                          ride_data: Optional[Mapping[str, Any]] = None) -> dict:
    """
    Edit or delete one of the caller's scheduled rides.

    Deleting a recurring master also deletes the instances it generated
    that have not been activated yet.

    Raises:
        UnauthenticatedError: no caller
        InvalidArgumentError: missing fields, bad ride data or unknown action
        NotFoundError: no such scheduled ride
        PermissionDeniedError: the caller does not own the ride
        InternalError: the write failed
    """
    if caller is None or not caller.is_authenticated:
        logger.warning("Unauthenticated attempt to manage a scheduled ride")
        raise UnauthenticatedError("User must be authenticated.")

    if not action or not ride_id:
        logger.error("Missing action or ride id from user %s", caller.pk)
        raise InvalidArgumentError("Missing action or rideId.")

    try:
        with transaction.atomic():
            scheduled = _get_owned(caller, ride_id)

            if action == ACTION_EDIT:
                _edit(scheduled, ride_data)
                logger.info("Scheduled ride %s edited by user %s", scheduled.id, caller.pk)
                return {"success": True, "message": "Scheduled ride updated successfully."}

            if action == ACTION_DELETE:
                _delete(scheduled)
                logger.info("Scheduled ride %s deleted by user %s", ride_id, caller.pk)
                return {"success": True, "message": "Scheduled ride deleted successfully."}

            logger.error("Invalid scheduled ride action '%s' from user %s", action, caller.pk)
            raise InvalidArgumentError("Invalid action specified.")
    except ServiceError:
        raise
    except DatabaseError as exc:
        logger.exception("Error managing scheduled ride %s (action %s, user %s)", ride_id, action, caller.pk)
        raise InternalError("Could not manage scheduled ride.", details=str(exc)) from exc


def _get_owned(caller, ride_id) -> ScheduledRide:
    try:
        scheduled = ScheduledRide.objects.select_for_update().get(pk=int(ride_id))
    except (ValueError, TypeError, ScheduledRide.DoesNotExist):
        logger.warning("Scheduled ride %s not found for user %s", ride_id, caller.pk)
        raise NotFoundError("Scheduled ride not found.")

    if scheduled.customer_id != caller.pk:
        logger.warning(
            "User %s attempted to manage scheduled ride %s owned by %s",
            caller.pk, scheduled.id, scheduled.customer_id,
        )
        raise PermissionDeniedError("User does not own this scheduled ride.")
    return scheduled


def _edit(scheduled: ScheduledRide, ride_data: Optional[Mapping[str, Any]]):
    # Imported here: the serializer module pulls in the rides app
    from scheduled_rides.serializers import ScheduledRideSerializer

    if not ride_data:
        raise InvalidArgumentError("Missing rideData for edit action.")

    serializer = ScheduledRideSerializer(scheduled, data=dict(ride_data), partial=True)
    if not serializer.is_valid():
        raise InvalidArgumentError("Invalid ride data for edit.", details=serializer.errors)
    serializer.save()


def _delete(scheduled: ScheduledRide):
    if scheduled.is_recurring:
        removed, _ = (
            ScheduledRide.objects
            .filter(master=scheduled, status=ScheduledRide.STATUS_SCHEDULED)
            .delete()
        )
        logger.info("Deleted %s pending instance(s) of recurring ride %s", removed, scheduled.id)
    scheduled.delete()
