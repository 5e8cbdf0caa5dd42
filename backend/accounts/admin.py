from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from accounts.models import User, CustomerProfile


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin panel for custom User model"""

    list_display = [
        "username",
        "name",
        "role",
        "phone_number",
        "is_active",
        "is_staff",
    ]

    list_filter = [
        "role",
        "is_active",
        "is_staff",
        "date_joined",
    ]

    search_fields = [
        "username",
        "name",
        "email",
        "phone_number",
    ]

    ordering = ("username",)

    # Extend default Django UserAdmin fieldsets
    fieldsets = BaseUserAdmin.fieldsets + (
        (
            "Ride Profile",
            {
                "fields": (
                    "role",
                    "name",
                    "phone_number",
                    "gender",
                    "dob",
                    "profile_image_url",
                    "fcm_token",
                )
            },
        ),
    )

    # For create user page in admin
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        (
            "Ride Profile",
            {
                "fields": (
                    "role",
                    "name",
                    "phone_number",
                )
            },
        ),
    )


@admin.register(CustomerProfile)
class CustomerProfileAdmin(admin.ModelAdmin):
    list_display = [
        "user",
        "completed_rides_count",
        "total_ratings_received_count",
        "rides_cancelled_by_driver_count",
    ]
    search_fields = ["user__username", "user__name"]
