"""App configuration for authentication components."""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Authentication app holds the User, Device, and RefreshToken models and auth flows."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
