"""Keep ride display fields in step with user profile edits."""

import logging

from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from drivers.models import DriverProfile

logger = logging.getLogger(__name__)


def _schedule_refresh(user_id):
    from rides.tasks import refresh_ride_projections_task

    transaction.on_commit(lambda: refresh_ride_projections_task.delay(user_id))


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def refresh_projections_on_user_save(sender, instance, created, update_fields=None, **kwargs):
    if created:
        return
    # Token and login bookkeeping do not affect any displayed field
    if update_fields and set(update_fields) <= {"fcm_token", "last_login", "password"}:
        return
    _schedule_refresh(instance.pk)


@receiver(post_save, sender=DriverProfile)
def refresh_projections_on_driver_profile_save(sender, instance, created, update_fields=None, **kwargs):
    if created:
        return
    if update_fields and not set(update_fields) & {"license_number", "vehicle_type"}:
        return
    _schedule_refresh(instance.user_id)
