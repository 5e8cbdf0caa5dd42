from django.contrib import admin
from drivers.models import DriverProfile


@admin.register(DriverProfile)
class DriverProfileAdmin(admin.ModelAdmin):
    """Admin panel for managing Driver Profiles"""

    list_display = [
        "user",
        "vehicle_number",
        "vehicle_type",
        "is_online",
        "status",
        "kijiwe",
        "completed_rides_count",
    ]

    list_filter = [
        "status",
        "is_online",
        "kijiwe",
    ]

    search_fields = [
        "user__username",
        "user__name",
        "vehicle_number",
        "license_number",
    ]

    ordering = ("user__username",)
