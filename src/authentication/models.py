"""Custom User model with bcrypt-hashed passwords, plus login devices and refresh tokens.

Note: We intentionally avoid Django's built-in groups/permissions (no
PermissionsMixin); authorization runs exclusively through our own
Role/Permission tables.
"""

import uuid
from typing import ClassVar, Optional

from django.contrib.auth.models import AbstractBaseUser
from django.db import models
from django.utils import timezone

from .managers import UserManager


class UserStatus(models.TextChoices):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    BLOCKED = "BLOCKED"
    SUSPENDED = "SUSPENDED"


class ViolationType(models.TextChoices):
    SPAM = "SPAM"
    CHEAT = "CHEAT"
    POLICY_VIOLATION = "POLICY_VIOLATION"


class ActionTaken(models.TextChoices):
    WARNING = "WARNING"
    LOCK = "LOCK"
    BAN = "BAN"
    UNLOCK = "UNLOCK"


class User(AbstractBaseUser):
    """Customer or staff account identified by email; exactly one role."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    password_hash = models.CharField(max_length=128)
    full_name = models.CharField(max_length=150, blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    role = models.ForeignKey("access_control.Role", on_delete=models.PROTECT, related_name="users")
    status = models.CharField(max_length=10, choices=UserStatus.choices, default=UserStatus.ACTIVE)
    lock_expiration_date = models.DateTimeField(null=True, blank=True)
    last_violation = models.ForeignKey(
        "UserViolation", null=True, blank=True, on_delete=models.SET_NULL, related_name="+"
    )
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_by_id = models.UUIDField(null=True, blank=True)
    updated_by_id = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: ClassVar[list[str]] = []

    objects = UserManager()

    class Meta:
        """Default ordering shows newest users first."""
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.email

    @property
    def is_active(self) -> bool:  # type: ignore[override]
        return self.status == UserStatus.ACTIVE and self.deleted_at is None

    @property
    def lock_expired(self) -> bool:
        """True when a timed lock has run out and the account may be reactivated."""
        return (
            self.status == UserStatus.BLOCKED
            and self.lock_expiration_date is not None
            and self.lock_expiration_date <= timezone.now()
        )

    def set_password(self, raw_password: Optional[str]) -> None:  # type: ignore[override]
        """Override to ensure bcrypt hashing via manager utility."""

        if raw_password is None:
            self.password_hash = ""
        else:
            self.password_hash = UserManager.hash_password(raw_password)

    def check_password(self, raw_password: Optional[str]) -> bool:  # type: ignore[override]
        """Delegate to bcrypt verification helper."""

        if raw_password is None:
            return False
        return UserManager.verify_password(self, raw_password)


class Device(models.Model):
    """Login session binding: one row per successful login."""

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="devices")
    user_agent = models.CharField(max_length=512, blank=True)
    ip = models.CharField(max_length=64, blank=True)
    is_active = models.BooleanField(default=True)
    last_active = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.user_id} @ {self.ip}"


class RefreshToken(models.Model):
    """Persisted refresh token; deleted when used or on logout."""

    token = models.CharField(max_length=1024, unique=True)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="refresh_tokens")
    device = models.ForeignKey(Device, on_delete=models.CASCADE, related_name="refresh_tokens")
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)


class UserViolation(models.Model):
    """Moderation record written by an admin; a LOCK action also locks the account."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="violations")
    reason = models.TextField()
    violation_type = models.CharField(max_length=20, choices=ViolationType.choices)
    action_taken = models.CharField(max_length=10, choices=ActionTaken.choices)
    lock_duration_days = models.PositiveSmallIntegerField(null=True, blank=True)
    created_by_id = models.UUIDField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]


__all__ = [
    "UserStatus",
    "ViolationType",
    "ActionTaken",
    "User",
    "Device",
    "RefreshToken",
    "UserViolation",
]
