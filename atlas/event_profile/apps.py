"""Configure this application."""

from django.apps import AppConfig


class EventProfileConfig(AppConfig):
    """Configuration for this django app."""

    name = "atlas.event_profile"
    verbose_name = "Atlas event profile"
    default_auto_field = "django.db.models.BigAutoField"
