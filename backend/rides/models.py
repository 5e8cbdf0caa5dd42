from decimal import Decimal

from django.db import models
from django.conf import settings


class RideRequest(models.Model):
    """Primary trip record tracked through its lifecycle"""

    STATUS_PENDING_MATCH = 'pending_match'
    STATUS_PENDING_ACCEPTANCE = 'pending_driver_acceptance'
    STATUS_ACCEPTED = 'accepted'
    STATUS_ARRIVED = 'arrivedAtPickup'
    STATUS_ON_RIDE = 'onRide'
    STATUS_COMPLETED = 'completed'
    STATUS_DECLINED = 'declined_by_driver'
    STATUS_CANCELLED_BY_DRIVER = 'cancelled_by_driver'
    STATUS_NO_DRIVERS = 'no_drivers_available'
    STATUS_NO_KIJIWES = 'no_kijiwes_nearby'
    STATUS_MISSING_PICKUP = 'matching_error_missing_pickup'
    STATUS_KIJIWE_FETCH_ERROR = 'matching_error_kijiwe_fetch'

    STATUS_CHOICES = [
        (STATUS_PENDING_MATCH, 'Pending match'),
        (STATUS_PENDING_ACCEPTANCE, 'Pending driver acceptance'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_ARRIVED, 'Driver arrived at pickup'),
        (STATUS_ON_RIDE, 'On ride'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_DECLINED, 'Declined by driver'),
        (STATUS_CANCELLED_BY_DRIVER, 'Cancelled by driver'),
        (STATUS_NO_DRIVERS, 'No drivers available'),
        (STATUS_NO_KIJIWES, 'No kijiwes nearby'),
        (STATUS_MISSING_PICKUP, 'Matching error: missing pickup'),
        (STATUS_KIJIWE_FETCH_ERROR, 'Matching error: kijiwe fetch failed'),
    ]

    ACTIVE_STATUSES = (
        STATUS_PENDING_MATCH,
        STATUS_PENDING_ACCEPTANCE,
        STATUS_ACCEPTED,
        STATUS_ARRIVED,
        STATUS_ON_RIDE,
    )

    # Parties
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='ride_requests'
    )
    driver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='driver_rides'
    )
    kijiwe = models.ForeignKey(
        'kijiwe.Kijiwe',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ride_requests'
    )
    scheduled_ride = models.ForeignKey(
        'scheduled_rides.ScheduledRide',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='ride_requests'
    )
    title = models.CharField(max_length=120, blank=True)

    # Trip
    pickup_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    pickup_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    pickup_address_name = models.CharField(max_length=255, blank=True)
    dropoff_latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    dropoff_longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    dropoff_address_name = models.CharField(max_length=255, blank=True)
    stops = models.JSONField(default=list, blank=True)
    customer_note_to_driver = models.TextField(blank=True)

    status = models.CharField(max_length=40, choices=STATUS_CHOICES, default=STATUS_PENDING_MATCH)

    # Estimates supplied by the customer app
    estimated_distance_km = models.DecimalField(max_digits=9, decimal_places=3, null=True, blank=True)
    estimated_duration_minutes = models.DecimalField(max_digits=9, decimal_places=2, null=True, blank=True)
    customer_calculated_estimated_fare = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    # Final fare figures
    fare = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    driver_earnings = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    fare_config_used = models.JSONField(null=True, blank=True)
    actual_distance_km = models.DecimalField(max_digits=9, decimal_places=3, null=True, blank=True)
    actual_driving_duration_minutes = models.DecimalField(max_digits=9, decimal_places=2, null=True, blank=True)
    actual_total_waiting_time_minutes = models.DecimalField(max_digits=9, decimal_places=2, null=True, blank=True)

    # Timestamps
    requested_at = models.DateTimeField(auto_now_add=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    # Customer display fields (projection)
    customer_name = models.CharField(max_length=150, blank=True)
    customer_profile_image_url = models.URLField(max_length=500, null=True, blank=True)
    customer_age_range = models.CharField(max_length=20, blank=True)
    customer_average_rating = models.FloatField(default=0.0)
    customer_details = models.CharField(max_length=255, blank=True)

    # Driver display fields (projection)
    driver_name = models.CharField(max_length=150, blank=True)
    driver_profile_image_url = models.URLField(max_length=500, null=True, blank=True)
    driver_gender = models.CharField(max_length=20, blank=True)
    driver_age_group = models.CharField(max_length=20, blank=True)
    driver_license_number = models.CharField(max_length=50, blank=True)
    driver_vehicle_type = models.CharField(max_length=50, blank=True)

    # Driver's rating of the customer
    driver_rating_to_customer = models.DecimalField(max_digits=3, decimal_places=2, null=True, blank=True)
    driver_comment_to_customer = models.TextField(null=True, blank=True)

    class Meta:
        db_table = 'ride_requests'
        ordering = ['-requested_at']

    def __str__(self):
        return f"Ride #{self.id} - {self.customer} - {self.status}"

    @property
    def has_pickup(self) -> bool:
        return self.pickup_latitude is not None and self.pickup_longitude is not None


class FareConfig(models.Model):
    """Singleton rate table shared by estimates and final fares"""

    SINGLETON_ID = 1

    starting_fare = models.DecimalField(max_digits=12, decimal_places=2, default=300)
    fare_per_kilometer = models.DecimalField(max_digits=12, decimal_places=2, default=350)
    fare_per_minute_driving = models.DecimalField(max_digits=12, decimal_places=2, default=60)
    fare_per_minute_waiting = models.DecimalField(max_digits=12, decimal_places=2, default=60)
    minimum_fare = models.DecimalField(max_digits=12, decimal_places=2, default=1250)
    rounding_increment = models.DecimalField(max_digits=12, decimal_places=2, default=500)
    commission_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0.20'))
    currency = models.CharField(max_length=3, default='TZS')

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'fare_config'

    def __str__(self):
        return f"Fare settings ({self.currency})"

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_ID
        super().save(*args, **kwargs)


class ChatMessage(models.Model):
    """Message exchanged between customer and driver about a ride"""

    ride = models.ForeignKey(RideRequest, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='ride_messages'
    )
    text = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ride_chat_messages'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Message #{self.id} on ride {self.ride_id}"
