"""Serializers for authentication flows (register, login, tokens, profile, locks, violations)."""

from django.utils import timezone
from rest_framework import serializers

from .models import ActionTaken, User, UserViolation, ViolationType


class RegisterSerializer(serializers.Serializer):
    """Validate a sign-up payload; the account always gets the CLIENT role."""

    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    confirm_password = serializers.CharField(write_only=True, min_length=8)
    full_name = serializers.CharField(max_length=150)
    phone_number = serializers.CharField(max_length=20, required=False, allow_blank=True)

    @staticmethod
    def validate_email(value):
        """Ensure email is unique before creation."""
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already in use")
        return value

    def validate(self, attrs):
        """Ensure provided passwords match before creation."""
        if attrs.get("password") != attrs.get("confirm_password"):
            raise serializers.ValidationError("Passwords do not match")
        attrs.pop("confirm_password")
        return attrs


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)


class RefreshTokenSerializer(serializers.Serializer):
    refresh_token = serializers.CharField()


class UserDetailSerializer(serializers.ModelSerializer):
    """Read-only user profile payload for responses."""

    role = serializers.CharField(source="role.name")

    class Meta:
        """Expose identity fields, account state, and role name."""
        model = User
        fields = [
            "id",
            "email",
            "full_name",
            "phone_number",
            "status",
            "role",
            "created_at",
        ]
        read_only_fields = fields


class ProfileUpdateSerializer(serializers.ModelSerializer):
    """Patchable fields for ``auth/profile`` updates."""

    class Meta:
        """Allow partial updates of name and phone number."""
        model = User
        fields = ["full_name", "phone_number"]
        extra_kwargs = {field: {"required": False, "allow_blank": True} for field in fields}

    def validate(self, attrs):
        """Reject payloads trying to change email, role, or status here."""
        forbidden = {"email", "role", "role_id", "status"} & set(getattr(self, "initial_data", {}))
        if forbidden:
            raise serializers.ValidationError(
                f"{', '.join(sorted(forbidden))} cannot be updated via this endpoint"
            )
        return super().validate(attrs)


class LockUserSerializer(serializers.Serializer):
    """Either a duration in minutes or an absolute ``until`` timestamp."""

    duration_minutes = serializers.IntegerField(required=False, min_value=1, max_value=525600)
    until = serializers.DateTimeField(required=False)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)

    def validate(self, attrs):
        if not attrs.get("duration_minutes") and not attrs.get("until"):
            raise serializers.ValidationError("Either duration_minutes or until is required")
        until = attrs.get("until")
        if until is not None and until <= timezone.now():
            raise serializers.ValidationError("Lock expiration must be in the future")
        return attrs


class UserLockSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "email", "status", "lock_expiration_date"]
        read_only_fields = fields


class CreateUserViolationSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=3, max_length=1000)
    violation_type = serializers.ChoiceField(choices=ViolationType.choices)
    action_taken = serializers.ChoiceField(choices=ActionTaken.choices)
    lock_duration_days = serializers.IntegerField(required=False, min_value=1, max_value=365)

    def validate(self, attrs):
        if attrs["action_taken"] == ActionTaken.LOCK and not attrs.get("lock_duration_days"):
            raise serializers.ValidationError(
                {"lock_duration_days": "Required when action_taken is LOCK"}
            )
        return attrs


class UserViolationSerializer(serializers.ModelSerializer):
    """Violation record plus the account's lock expiry after the action."""

    lock_expiration_date = serializers.DateTimeField(source="user.lock_expiration_date", read_only=True)

    class Meta:
        model = UserViolation
        fields = [
            "id",
            "reason",
            "violation_type",
            "action_taken",
            "lock_duration_days",
            "created_by_id",
            "created_at",
            "lock_expiration_date",
        ]
        read_only_fields = fields
