# wallet/services/balance_service.py

"""
BALANCE SERVICE

Purpose:
- The single choke-point for balance mutation (credit/debit).
- Every movement writes a Transaction ledger line in the same DB transaction.

Rules:
- Profiles are row-locked (select_for_update) before reading the balance.
- A debit that would make the balance negative raises InsufficientBalanceError;
  nothing is written in that case.
- Amounts are quantized to 2dp (ROUND_HALF_UP).
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import transaction

from wallet.models import Profile, Transaction
from wallet.services.exceptions import InsufficientBalanceError, InvalidAmountError

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    if v is None or v == "":
        raise InvalidAmountError("amount is required")
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise InvalidAmountError(f"Invalid amount: {v!r}") from exc


def ensure_profile(user) -> Profile:
    profile, _ = Profile.objects.get_or_create(user=user)
    return profile


def get_balance(user) -> Decimal:
    return ensure_profile(user).balance


def lock_profile(user) -> Profile:
    """
    Return the user's profile row-locked for the current transaction.
    Must be called inside transaction.atomic().
    """
    ensure_profile(user)
    return Profile.objects.select_for_update().get(user=user)


@transaction.atomic
def update_user_balance(
    *,
    user,
    amount,
    tx_type: str,
    description: str = "",
    payment_method: str = "",
    transaction_id: str = "",
) -> Decimal:
    """
    Credit (amount > 0) or debit (amount < 0) a user's balance and record
    the ledger line. Returns the new balance.
    """
    delta = _money(amount)
    if delta == Decimal("0.00"):
        raise InvalidAmountError("amount must not be zero")

    profile = lock_profile(user)
    new_balance = profile.balance + delta

    if new_balance < Decimal("0.00"):
        logger.warning(
            "Balance debit refused",
            extra={"user_id": str(user.pk), "balance": str(profile.balance), "amount": str(delta)},
        )
        raise InsufficientBalanceError(
            f"Insufficient balance: available {profile.balance}, required {-delta}"
        )

    profile.balance = new_balance
    profile.save(update_fields=["balance", "updated_at"])

    Transaction.objects.create(
        user=user,
        amount=delta,
        type=tx_type,
        status=Transaction.STATUS_COMPLETED,
        description=description[:255],
        payment_method=payment_method,
        transaction_id=transaction_id,
    )

    logger.info(
        "Balance updated",
        extra={"user_id": str(user.pk), "amount": str(delta), "type": tx_type, "balance": str(new_balance)},
    )
    return new_balance
