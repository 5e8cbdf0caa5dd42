"""Kijiwe (driver staging area) app configuration."""

from django.apps import AppConfig


class KijiweConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'kijiwe'

    def ready(self):
        from . import signals  # noqa: F401
