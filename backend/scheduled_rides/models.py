from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class ScheduledRide(models.Model):
    """A future-dated ride, a recurring template, or an instance generated from one."""

    STATUS_SCHEDULED = 'scheduled'
    STATUS_ACTIVATED = 'activated'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, 'Scheduled'),
        (STATUS_ACTIVATED, 'Activated'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    RECURRENCE_DAILY = 'Daily'
    RECURRENCE_WEEKLY = 'Weekly'
    RECURRENCE_CHOICES = [
        (RECURRENCE_DAILY, 'Daily'),
        (RECURRENCE_WEEKLY, 'Weekly'),
    ]

    WEEKDAY_ABBREVIATIONS = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='scheduled_rides'
    )
    title = models.CharField(max_length=120, blank=True)

    # Trip
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6)
    pickup_address_name = models.CharField(max_length=255, blank=True)
    dropoff_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    dropoff_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    dropoff_address_name = models.CharField(max_length=255, blank=True)
    stops = models.JSONField(default=list, blank=True)
    customer_note_to_driver = models.TextField(blank=True)

    # Target time of this ride (first occurrence for a recurring template)
    scheduled_date_time = models.DateTimeField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)

    # Recurrence
    is_recurring = models.BooleanField(default=False)
    recurrence_type = models.CharField(max_length=10, choices=RECURRENCE_CHOICES, null=True, blank=True)
    recurrence_days_of_week = models.JSONField(null=True, blank=True)
    recurrence_end_date = models.DateTimeField(null=True, blank=True)
    last_instance_generated_up_to = models.DateTimeField(null=True, blank=True)

    # Set on instances generated from a recurring template
    master = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='instances'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'scheduled_rides'
        ordering = ['scheduled_date_time']
        indexes = [
            models.Index(fields=['status', 'is_recurring', 'scheduled_date_time'], name='scheduled_r_status_5c1f2e_idx'),
        ]

    def __str__(self):
        kind = 'recurring' if self.is_recurring else 'one-off'
        return f"Scheduled ride #{self.id} ({kind}) - {self.scheduled_date_time:%Y-%m-%d %H:%M}"

    def clean(self):
        if self.master_id and self.is_recurring:
            raise ValidationError("Generated instances cannot themselves be recurring.")
        if self.recurrence_type == self.RECURRENCE_WEEKLY:
            days = self.recurrence_days_of_week or []
            unknown = [day for day in days if day not in self.WEEKDAY_ABBREVIATIONS]
            if unknown:
                raise ValidationError({'recurrence_days_of_week': f"Unknown weekdays: {unknown}"})
