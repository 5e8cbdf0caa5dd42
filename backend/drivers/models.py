from django.db import models
from django.conf import settings

User = settings.AUTH_USER_MODEL


class DriverProfile(models.Model):
    """Driver-specific details and availability status"""
    STATUS_OFFLINE = 'offline'
    STATUS_WAITING = 'waitingForRide'
    STATUS_PENDING_ACCEPTANCE = 'pending_ride_acceptance'
    STATUS_GOING_TO_PICKUP = 'goingToPickup'
    STATUS_ARRIVED = 'arrivedAtPickup'
    STATUS_ON_RIDE = 'onRide'

    STATUS_CHOICES = [
        (STATUS_OFFLINE, 'Offline'),
        (STATUS_WAITING, 'Waiting for ride'),
        (STATUS_PENDING_ACCEPTANCE, 'Pending ride acceptance'),
        (STATUS_GOING_TO_PICKUP, 'Going to pickup'),
        (STATUS_ARRIVED, 'Arrived at pickup'),
        (STATUS_ON_RIDE, 'On ride'),
    ]

    # Statuses in which the driver is bound to a ride
    BUSY_STATUSES = (
        STATUS_PENDING_ACCEPTANCE,
        STATUS_GOING_TO_PICKUP,
        STATUS_ARRIVED,
        STATUS_ON_RIDE,
    )

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='driver_profile')

    # Vehicle & license details
    vehicle_number = models.CharField(max_length=20, blank=True)
    vehicle_type = models.CharField(max_length=50, blank=True)
    license_number = models.CharField(max_length=50, blank=True)

    # Availability
    is_online = models.BooleanField(default=False)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default=STATUS_OFFLINE)

    # Home staging area the driver returns to after a ride
    kijiwe = models.ForeignKey(
        'kijiwe.Kijiwe',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='home_drivers'
    )

    # Counters
    completed_rides_count = models.PositiveIntegerField(default=0)
    declined_by_driver_count = models.PositiveIntegerField(default=0)
    cancelled_by_driver_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'driver_profiles'

    def __str__(self):
        return f"{self.user.username} - {self.status}"

    @property
    def is_available(self) -> bool:
        return self.is_online and self.status == self.STATUS_WAITING
