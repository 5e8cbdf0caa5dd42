"""Triggers on ride documents: dispatch new requests, relay chat messages."""

import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from notifications.messages import ChatMessageNotification
from notifications.relay import get_relay

from .models import ChatMessage, RideRequest

logger = logging.getLogger(__name__)


@receiver(post_save, sender=RideRequest)
def dispatch_new_ride_request(sender, instance, created, **kwargs):
    if not created:
        return
    if instance.status != RideRequest.STATUS_PENDING_MATCH:
        return

    from .tasks import match_ride_request_task

    ride_id = instance.id
    logger.info("Ride request %s created; scheduling dispatch", ride_id)
    transaction.on_commit(lambda: match_ride_request_task.delay(ride_id))


@receiver(post_save, sender=ChatMessage)
def relay_chat_message(sender, instance, created, **kwargs):
    if not created:
        return

    ride = instance.ride
    sender_id = instance.sender_id

    if sender_id is not None and sender_id == ride.customer_id:
        recipient_id = ride.driver_id
        sender_name = ride.customer_name or "Customer"
    elif sender_id is not None and sender_id == ride.driver_id:
        recipient_id = ride.customer_id
        sender_name = ride.driver_name or "Driver"
    else:
        logger.warning("Chat message %s on ride %s has an unknown sender %s", instance.id, ride.id, sender_id)
        return

    if recipient_id is None:
        logger.warning("Chat message %s on ride %s has no recipient", instance.id, ride.id)
        return

    message = ChatMessageNotification(
        ride_request_id=ride.id,
        sender_id=sender_id,
        sender_name=sender_name,
        text=instance.text,
    )
    transaction.on_commit(lambda: get_relay().notify(recipient_id, message), robust=True)
