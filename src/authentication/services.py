"""Token issuance/verification and the login, refresh, and logout flows."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from django.conf import settings
from django.db import transaction
from django.utils import timezone as dj_timezone
from rest_framework.exceptions import AuthenticationFailed, ValidationError

from access_control.hierarchy import RoleName
from access_control.models import Role
from core.errors import LockDurationRequired, UserBlocked, UserNotFound
from .models import ActionTaken, Device, RefreshToken, User, UserStatus, UserViolation


class TokenService:
    """Sign and verify access and refresh JWTs.

    Access and refresh tokens use separate secrets. Verification is a pure
    function of the token and the secret: no database or cache lookups.
    """

    ACCESS = "access"
    REFRESH = "refresh"

    @classmethod
    def sign_access_token(cls, *, user_id, email: str, device_id, role_id, role_name: str) -> str:
        claims = {
            "sub": str(user_id),
            "email": email,
            "device_id": str(device_id),
            "role_id": str(role_id),
            "role_name": role_name,
        }
        token, _ = cls._encode(claims, cls.ACCESS, settings.ACCESS_TOKEN_SECRET, settings.ACCESS_TOKEN_LIFETIME)
        return token

    @classmethod
    def sign_refresh_token(cls, *, user_id, email: str) -> tuple[str, dict[str, Any]]:
        """Return the refresh token and its payload (callers persist ``exp``)."""
        claims = {"sub": str(user_id), "email": email}
        return cls._encode(claims, cls.REFRESH, settings.REFRESH_TOKEN_SECRET, settings.REFRESH_TOKEN_LIFETIME)

    @classmethod
    def decode_access_token(cls, token: str) -> dict[str, Any]:
        return cls._decode(token, settings.ACCESS_TOKEN_SECRET, cls.ACCESS)

    @classmethod
    def decode_refresh_token(cls, token: str) -> dict[str, Any]:
        return cls._decode(token, settings.REFRESH_TOKEN_SECRET, cls.REFRESH)

    @classmethod
    def _encode(cls, claims: dict[str, Any], token_type: str, secret: str, ttl: timedelta):
        issued_at = datetime.now(timezone.utc)
        payload = {
            **claims,
            "jti": str(uuid.uuid4()),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + ttl).timestamp()),
            "type": token_type,
        }
        return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM), payload

    @classmethod
    def _decode(cls, token: str, secret: str, expected_type: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Invalid token") from exc

        if payload.get("type") != expected_type or not payload.get("sub"):
            raise AuthenticationFailed("Invalid token type")
        return payload


_BLOCKED_STATUSES = (UserStatus.INACTIVE, UserStatus.BLOCKED, UserStatus.SUSPENDED)


class AuthService:
    """Account flows built on :class:`TokenService` and the Device/RefreshToken tables."""

    @staticmethod
    def register(*, email: str, password: str, **profile) -> User:
        """Create a user with the CLIENT role."""
        role = Role.objects.alive().filter(name=RoleName.CLIENT).first()
        if role is None:
            raise ValidationError(f"Default role '{RoleName.CLIENT}' not configured")
        return User.objects.create_user(email=email, password=password, role=role, **profile)

    @classmethod
    def login(cls, *, email: str, password: str, user_agent: str = "", ip: str = "") -> dict[str, str]:
        user = User.objects.alive().select_related("role").filter(email__iexact=email).first()
        if user is None or not user.check_password(password):
            raise AuthenticationFailed("Invalid credentials")

        if user.lock_expired:
            user.status = UserStatus.ACTIVE
            user.lock_expiration_date = None
            user.save(update_fields=["status", "lock_expiration_date", "updated_at"])
        if user.status in _BLOCKED_STATUSES:
            raise UserBlocked()

        with transaction.atomic():
            device = Device.objects.create(user=user, user_agent=user_agent[:512], ip=ip)
            return cls.generate_tokens(user, device)

    @staticmethod
    def generate_tokens(user: User, device: Device) -> dict[str, str]:
        """Issue an access/refresh pair and persist the refresh token."""
        access_token = TokenService.sign_access_token(
            user_id=user.id,
            email=user.email,
            device_id=device.id,
            role_id=user.role_id,
            role_name=user.role.name,
        )
        refresh_token, payload = TokenService.sign_refresh_token(user_id=user.id, email=user.email)
        RefreshToken.objects.create(
            token=refresh_token,
            user=user,
            device=device,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
        return {"access_token": access_token, "refresh_token": refresh_token}

    @classmethod
    def refresh(cls, *, refresh_token: str, user_agent: str = "", ip: str = "") -> dict[str, str]:
        """Exchange a refresh token for a new pair; the old token is consumed."""
        TokenService.decode_refresh_token(refresh_token)

        with transaction.atomic():
            stored = (
                RefreshToken.objects.select_for_update()
                .select_related("user__role", "device")
                .filter(token=refresh_token)
                .first()
            )
            if stored is None:
                raise AuthenticationFailed("Refresh token has been revoked or does not exist")
            user = stored.user
            if not user.is_active:
                raise AuthenticationFailed("User not found or inactive")

            device = stored.device
            device.user_agent = user_agent[:512]
            device.ip = ip
            device.last_active = dj_timezone.now()
            device.is_active = True
            device.save(update_fields=["user_agent", "ip", "last_active", "is_active"])

            stored.delete()
            return cls.generate_tokens(user, device)

    @staticmethod
    def logout(*, refresh_token: str) -> None:
        """Delete the refresh token and mark its device inactive."""
        TokenService.decode_refresh_token(refresh_token)

        with transaction.atomic():
            stored = RefreshToken.objects.select_related("device").filter(token=refresh_token).first()
            if stored is None:
                raise AuthenticationFailed("Refresh token has been revoked or does not exist")
            device = stored.device
            stored.delete()
            device.is_active = False
            device.save(update_fields=["is_active"])

    @staticmethod
    def get_active_user(user_id) -> User:
        """Load the caller's account, rejecting soft-deleted or blocked ones."""
        user = User.objects.alive().select_related("role").filter(id=user_id).first()
        if user is None:
            raise UserNotFound()
        if user.status in _BLOCKED_STATUSES:
            raise AuthenticationFailed(f"Account is {user.status.lower()}")
        return user

    @staticmethod
    def lock_user(
        *,
        user_id,
        updated_by_id=None,
        duration_minutes: int | None = None,
        until: datetime | None = None,
    ) -> User:
        user = User.objects.alive().filter(id=user_id).first()
        if user is None:
            raise UserNotFound()
        if duration_minutes is None and until is None:
            raise ValidationError("Either duration_minutes or until is required")
        if duration_minutes is not None:
            until = dj_timezone.now() + timedelta(minutes=duration_minutes)
        if until <= dj_timezone.now():
            raise ValidationError("Lock expiration must be in the future")

        user.status = UserStatus.BLOCKED
        user.lock_expiration_date = until
        user.updated_by_id = updated_by_id
        user.save(update_fields=["status", "lock_expiration_date", "updated_by_id", "updated_at"])
        return user

    @staticmethod
    def unlock_user(*, user_id, updated_by_id=None) -> User:
        user = User.objects.alive().filter(id=user_id).first()
        if user is None:
            raise UserNotFound()
        user.status = UserStatus.ACTIVE
        user.lock_expiration_date = None
        user.updated_by_id = updated_by_id
        user.save(update_fields=["status", "lock_expiration_date", "updated_by_id", "updated_at"])
        return user

    @classmethod
    def mark_violation(
        cls,
        *,
        user_id,
        reason: str,
        violation_type: str,
        action_taken: str,
        lock_duration_days: int | None = None,
        created_by_id=None,
    ) -> UserViolation:
        """Record a violation and, for a LOCK action, lock the account for N days."""
        user = User.objects.alive().filter(id=user_id).first()
        if user is None:
            raise UserNotFound()
        if action_taken == ActionTaken.LOCK and not lock_duration_days:
            raise LockDurationRequired()

        with transaction.atomic():
            violation = UserViolation.objects.create(
                user=user,
                reason=reason,
                violation_type=violation_type,
                action_taken=action_taken,
                lock_duration_days=lock_duration_days,
                created_by_id=created_by_id,
            )
            if action_taken == ActionTaken.LOCK:
                user = cls.lock_user(
                    user_id=user.id,
                    updated_by_id=created_by_id,
                    until=dj_timezone.now() + timedelta(days=lock_duration_days),
                )
            User.objects.filter(id=user.id).update(
                last_violation=violation, updated_by_id=created_by_id, updated_at=dj_timezone.now()
            )
        violation.user = user
        return violation


__all__ = ["TokenService", "AuthService"]
