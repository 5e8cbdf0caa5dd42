"""Ride status WebSocket consumer."""

import logging
from typing import Dict, Any

from channels.db import database_sync_to_async

from .base import BaseConsumer
from ..broadcast import ride_group_name

logger = logging.getLogger(__name__)


class RideConsumer(BaseConsumer):
    """
    WebSocket consumer for live ride status.

    The customer and the assigned driver subscribe to a ride and receive
    a ``ride_status`` message on every transition.

    Client messages:
        {"type": "subscribe", "ride_id": 12}
        {"type": "unsubscribe", "ride_id": 12}
    """

    async def on_connect(self):
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
            "role": self.role,
            "message": "Ride status connection established",
        })

    async def handle_message(self, msg_type: str, data: Dict[str, Any]):
        if msg_type == "subscribe":
            await self._handle_subscribe(data)
        elif msg_type == "unsubscribe":
            await self._handle_unsubscribe(data)
        else:
            await self.send_error(f"Unknown message type: {msg_type}")

    # ---------------------- Message Handlers ----------------------

    async def _handle_subscribe(self, data: Dict[str, Any]):
        ride_id = data.get("ride_id")
        if ride_id is None:
            await self.send_error("subscribe requires ride_id")
            return

        current_status = await self._participant_ride_status(ride_id)
        if current_status is None:
            await self.send_error("You are not authorized to follow this ride")
            return

        await self._join_group(ride_group_name(ride_id))
        await self.send_success("subscribed", ride_id=ride_id, status=current_status)

    async def _handle_unsubscribe(self, data: Dict[str, Any]):
        ride_id = data.get("ride_id")
        if ride_id is None:
            return

        await self._leave_group(ride_group_name(ride_id))
        await self.send_success("unsubscribed", ride_id=ride_id)

    # ---------------------- Event Handlers (from group_send) ----------------------

    async def ride_status(self, event):
        """Forward a ride status change."""
        await self.send_json({key: value for key, value in event.items()})

    # ---------------------- Database Helpers ----------------------

    @database_sync_to_async
    def _participant_ride_status(self, ride_id):
        """Current status of a ride the user is party to, else None."""
        from rides.models import RideRequest

        ride = (
            RideRequest.objects
            .filter(id=ride_id)
            .values("customer_id", "driver_id", "status")
            .first()
        )
        if ride is None:
            return None
        if self.user_id not in (ride["customer_id"], ride["driver_id"]):
            return None
        return ride["status"]
