"""Push a new inbox notification to its user once it is committed."""

import logging

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .messages import UserNotification
from .models import Notification
from .relay import get_relay

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Notification)
def push_new_notification(sender, instance, created, **kwargs):
    if not created:
        return

    logger.info("New notification for user %s: %s", instance.user_id, instance.title)
    message = UserNotification(
        notification_id=instance.id,
        notification_title=instance.title,
        notification_body=instance.body,
    )
    user_id = instance.user_id
    transaction.on_commit(lambda: get_relay().notify(user_id, message), robust=True)
