"""Accounts app configuration."""

from django.apps import AppConfig


class AccountsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'accounts'

    def ready(self):
        # Profile edits refresh the display fields copied onto open rides
        from . import signals  # noqa: F401
