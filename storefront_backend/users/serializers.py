# users/serializers.py

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from permissions.roles import ALL_ROLES

User = get_user_model()


# ---------------- REGISTER ----------------
class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={"input_type": "password"},
    )
    display_name = serializers.CharField(required=False, allow_blank=True, max_length=150)

    def validate_email(self, value):
        return value.strip().lower()


# ---------------- LOGIN (INPUT ONLY) ----------------
class LoginSerializer(serializers.Serializer):
    """
    Input validation only.
    Authentication is handled in the view.
    """

    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])


class ResendVerificationSerializer(serializers.Serializer):
    email = serializers.EmailField()
    redirect = serializers.CharField(required=False, allow_blank=True)


# ---------------- PASSWORD RESET ----------------
class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()


class PasswordResetConfirmSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()
    new_password = serializers.CharField(
        write_only=True,
        validators=[validate_password],
        style={"input_type": "password"},
    )


# ---------------- USER OUTPUT ----------------
class UserSerializer(serializers.ModelSerializer):
    """
    Safe user representation for frontend consumption.
    """

    balance = serializers.SerializerMethodField()
    email_verified = serializers.BooleanField(source="is_email_verified", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "display_name",
            "role",
            "email_verified",
            "balance",
            "created_at",
        ]
        read_only_fields = fields

    def get_balance(self, obj):
        profile = getattr(obj, "profile", None)
        return str(profile.balance) if profile else "0.00"


class MeUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["display_name"]


class AdminUserSerializer(UserSerializer):
    is_banned = serializers.BooleanField(read_only=True)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["is_active", "banned_until", "is_banned", "last_login"]
        read_only_fields = fields


class BanSerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=3650)


class RoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=sorted(ALL_ROLES))
