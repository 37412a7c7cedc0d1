# users/services/exceptions.py

"""
ACCOUNT SERVICE ERRORS
"""


class AccountError(Exception):
    """Base exception for account service failures."""


class RegistrationRateLimited(AccountError):
    def __init__(self, retry_after_seconds: int):
        super().__init__(f"Too many registration attempts. Retry in {retry_after_seconds}s")
        self.retry_after_seconds = retry_after_seconds


class EmailAlreadyRegistered(AccountError):
    """Raised when the email already belongs to an account."""


class VerificationError(AccountError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class PasswordResetError(AccountError):
    """Raised when a reset link is invalid, expired or already used."""
