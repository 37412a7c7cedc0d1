from .registration_attempt import RegistrationAttempt
from .user import User, UserManager

__all__ = [
    "User",
    "UserManager",
    "RegistrationAttempt",
]
