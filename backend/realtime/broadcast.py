"""
Live ride status fan-out over the channel layer.

Every status transition is logged and sent to the ``ride_<id>`` group,
which the customer and driver apps join through ``RideConsumer``.
"""

import logging
from typing import Any, Dict, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)


def ride_group_name(ride_id: int) -> str:
    return f"ride_{ride_id}"


def broadcast_ride_status(
    ride_id: int,
    status: str,
    previous_status: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Send a ``ride_status`` event to everyone watching a ride.

    Args:
        ride_id: RideRequest id
        status: New status
        previous_status: Status before the transition, if known
        extra: Additional JSON-safe fields for the apps

    Returns:
        True if the event was handed to the channel layer
    """
    logger.info("Ride request %s status changed from %s to %s", ride_id, previous_status, status)

    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer available for ride %s status broadcast", ride_id)
        return False

    event = {
        "type": "ride_status",
        "ride_id": ride_id,
        "status": status,
        "previous_status": previous_status,
    }
    if extra:
        event.update(extra)

    try:
        async_to_sync(channel_layer.group_send)(ride_group_name(ride_id), event)
    except Exception:
        logger.exception("Failed to broadcast status of ride %s", ride_id)
        return False
    return True
