from django.db import models
from django.conf import settings


class Kijiwe(models.Model):
    """A physical waiting spot where drivers queue for dispatch"""

    name = models.CharField(max_length=120)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)

    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='administered_kijiwes'
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'kijiwe'
        ordering = ['name']

    def __str__(self):
        return f"Kijiwe {self.name}"

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class QueueEntry(models.Model):
    """A driver waiting in a kijiwe queue. A driver is in at most one queue."""

    kijiwe = models.ForeignKey(Kijiwe, on_delete=models.CASCADE, related_name='queue_entries')
    driver = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='queue_entry',
        limit_choices_to={'role': 'driver'}
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'kijiwe_queue_entries'
        ordering = ['joined_at', 'id']

    def __str__(self):
        return f"{self.driver} @ {self.kijiwe.name}"
