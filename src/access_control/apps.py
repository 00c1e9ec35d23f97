"""App configuration for the access_control Django application.

This module wires up the application config, validates the role hierarchy,
and ensures that RBAC-related system checks are registered when Django starts.
"""

from django.apps import AppConfig


class AccessControlConfig(AppConfig):
    """Application configuration for the access_control app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "access_control"

    def ready(self) -> None:
        """Validate the role hierarchy and register system checks."""
        from . import checks  # noqa: F401
        from .hierarchy import get_role_hierarchy

        # Raises ImproperlyConfigured on unknown parents or cycles.
        get_role_hierarchy()
