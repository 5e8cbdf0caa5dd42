"""Scheduled rides app configuration."""

from django.apps import AppConfig


class ScheduledRidesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'scheduled_rides'
