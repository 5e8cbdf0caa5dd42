"""Audit logging for queue membership and kijiwe admin changes."""

import logging

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from .models import Kijiwe, QueueEntry

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Kijiwe)
def remember_previous_admin(sender, instance, **kwargs):
    if instance.pk is None:
        instance._previous_admin_id = None
        return
    instance._previous_admin_id = (
        Kijiwe.objects.filter(pk=instance.pk).values_list('admin_id', flat=True).first()
    )


@receiver(post_save, sender=Kijiwe)
def log_admin_change(sender, instance, created, **kwargs):
    previous = getattr(instance, '_previous_admin_id', None)
    if not created and previous != instance.admin_id:
        logger.info("Kijiwe %s admin changed from %s to %s", instance.pk, previous, instance.admin_id)


@receiver(post_save, sender=QueueEntry)
def log_queue_join(sender, instance, created, **kwargs):
    if created:
        logger.info("Kijiwe %s queue updated: driver %s added", instance.kijiwe_id, instance.driver_id)


@receiver(post_delete, sender=QueueEntry)
def log_queue_leave(sender, instance, **kwargs):
    logger.info("Kijiwe %s queue updated: driver %s removed", instance.kijiwe_id, instance.driver_id)
