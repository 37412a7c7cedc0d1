from .idempotency_record import IdempotencyRecord
from .profile import Profile
from .transaction import Transaction

__all__ = [
    "Profile",
    "Transaction",
    "IdempotencyRecord",
]
