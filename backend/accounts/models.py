from decimal import Decimal

from django.db import models
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Extended user model with role selection"""
    ROLE_CUSTOMER = 'customer'
    ROLE_DRIVER = 'driver'
    ROLE_CHOICES = [
        (ROLE_CUSTOMER, 'Customer'),
        (ROLE_DRIVER, 'Driver'),
    ]

    # Role & basic info
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_CUSTOMER)
    name = models.CharField(max_length=150, blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    gender = models.CharField(max_length=20, blank=True)
    dob = models.DateField(null=True, blank=True)
    profile_image_url = models.URLField(max_length=500, null=True, blank=True)

    # Push notification device token registered by the mobile app
    fcm_token = models.CharField(max_length=512, null=True, blank=True)

    class Meta:
        db_table = 'users'

    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"

    @property
    def is_driver(self) -> bool:
        return self.role == self.ROLE_DRIVER


class CustomerProfile(models.Model):
    """Rating totals and ride counters kept for customers"""

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='customer_profile')

    completed_rides_count = models.PositiveIntegerField(default=0)
    sum_of_ratings_received = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    total_ratings_received_count = models.PositiveIntegerField(default=0)
    rides_cancelled_by_driver_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'customer_profiles'

    def __str__(self):
        return f"Customer profile of {self.user.username}"

    @property
    def average_rating(self) -> float:
        if not self.total_ratings_received_count:
            return 0.0
        return float(self.sum_of_ratings_received) / self.total_ratings_received_count
