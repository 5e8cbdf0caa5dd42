"""Account lifecycle operations."""

import logging

from django.db import DatabaseError, transaction

from common.exceptions import InternalError, UnauthenticatedError
from kijiwe.services import leave_queues

logger = logging.getLogger(__name__)


def delete_user_account(user) -> dict:
    """
    Delete a user together with their profiles and queue entries.

    Rides keep their history; the deleted party's reference is cleared.

    Raises:
        UnauthenticatedError: no caller
        InternalError: the delete failed
    """
    if user is None or not user.is_authenticated:
        raise UnauthenticatedError("The function must be called while authenticated.")

    user_id = user.pk
    logger.info("User %s has requested account deletion", user_id)

    try:
        with transaction.atomic():
            leave_queues(user)
            user.delete()
    except DatabaseError as exc:
        logger.exception("Error deleting account for user %s", user_id)
        raise InternalError(
            "An error occurred while deleting your account. Please contact support.",
            details=str(exc),
        ) from exc

    logger.info("Deleted account of user %s", user_id)
    return {"success": True, "message": "Account deleted successfully."}
