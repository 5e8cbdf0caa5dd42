"""Rides app configuration."""

from django.apps import AppConfig


class RidesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'rides'

    def ready(self):
        # New ride requests are dispatched and new chat messages pushed
        # through post_save receivers registered here.
        from . import signals  # noqa: F401
