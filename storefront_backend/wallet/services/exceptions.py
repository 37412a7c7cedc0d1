# wallet/services/exceptions.py

"""
WALLET SERVICE ERRORS

Centralized domain errors for balance and idempotency services.
"""


class WalletError(Exception):
    """Base exception for all wallet service failures."""


class InsufficientBalanceError(WalletError):
    """Raised when a debit would take the balance below zero."""


class InvalidAmountError(WalletError):
    """Raised when an amount is not a usable money value."""


class IdempotencyConflictError(WalletError):
    """Raised when a request with the same key is still being processed."""
