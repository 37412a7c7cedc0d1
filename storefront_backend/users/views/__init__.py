from .admin_users import AdminUserViewSet
from .auth import ChangePasswordView, LoginView, LogoutView, RegisterView
from .me import MeView
from .password_reset import PasswordResetConfirmView, PasswordResetRequestView
from .session import SessionStatusView
from .verification import ResendVerificationView, VerifyEmailRedirectView

__all__ = [
    "RegisterView",
    "LoginView",
    "LogoutView",
    "ChangePasswordView",
    "PasswordResetRequestView",
    "PasswordResetConfirmView",
    "MeView",
    "SessionStatusView",
    "VerifyEmailRedirectView",
    "ResendVerificationView",
    "AdminUserViewSet",
]
