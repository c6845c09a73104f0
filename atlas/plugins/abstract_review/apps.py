"""Configure this application."""

from django.apps import AppConfig


class AbstractReviewConfig(AppConfig):
    """Configuration for this django app."""

    name = "atlas.plugins.abstract_review"
    label = "abstract_review"
    verbose_name = "Abstract review"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        """Call during initialization."""
        from . import signals  # NOQA
