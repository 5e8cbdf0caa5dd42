from django.contrib import admin

from .models import ScheduledRide


@admin.register(ScheduledRide)
class ScheduledRideAdmin(admin.ModelAdmin):
    list_display = ['id', 'customer', 'title', 'scheduled_date_time', 'status', 'is_recurring', 'recurrence_type']
    list_filter = ['status', 'is_recurring', 'recurrence_type']
    search_fields = ['customer__username', 'title', 'pickup_address_name']
    readonly_fields = ['master', 'last_instance_generated_up_to', 'created_at', 'updated_at']
    date_hierarchy = 'scheduled_date_time'
