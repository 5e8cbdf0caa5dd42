"""Tells what to show in the Django admin interface for rides app"""

from django.contrib import admin
from .models import RideRequest, FareConfig, ChatMessage


@admin.register(RideRequest)
class RideRequestAdmin(admin.ModelAdmin):
    """Ride Request admin"""
    list_display = ['id', 'customer', 'driver', 'kijiwe', 'status', 'fare', 'requested_at', 'completed_at']
    list_filter = ['status', 'requested_at']
    search_fields = ['customer__username', 'driver__username', 'pickup_address_name']
    readonly_fields = ['requested_at', 'accepted_at', 'completed_at', 'fare_config_used']
    date_hierarchy = 'requested_at'


@admin.register(FareConfig)
class FareConfigAdmin(admin.ModelAdmin):
    list_display = ('currency', 'starting_fare', 'fare_per_kilometer', 'minimum_fare', 'rounding_increment', 'commission_rate', 'updated_at')

    def has_add_permission(self, request):
        # Single row
        return not FareConfig.objects.exists()


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ("ride", "sender", "created_at")
    search_fields = ("ride__id", "sender__username", "text")
