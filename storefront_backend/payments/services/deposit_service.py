# payments/services/deposit_service.py

"""
DEPOSIT SERVICE

Purpose:
- PayPal top-ups of the account balance.

Money:
- fee = amount * FEE_PERCENT + FIXED_FEE        (3.9% + 0.30 by default)
- net = amount - fee                           (what the balance receives)
- amount must be >= MIN_DEPOSIT and leave a positive net

Crediting rules:
- Only a deposit with a verified, settled PayPal capture (transaction_id) is
  credited. An unsettled capture leaves the deposit pending.
- A verified webhook capture reopens a deposit the retry job failed.
- process_deposit_balance is atomic and idempotent: the deposit row is
  locked and is_processed is flipped in the same transaction as the credit.
- Capture, webhook, check_payment and the retry job all end in
  process_deposit_balance, whichever arrives first wins.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from notifications.models import Notification
from notifications.services.email import EMAIL_DEPOSIT_SUCCESS, send_email_safely
from notifications.services.notify import notify_admins, notify_user
from payments.models import Deposit
from payments.services import paypal
from payments.services.exceptions import (
    DepositAmountError,
    DepositNotFound,
    PaymentPendingError,
    PaymentVerificationError,
    PayPalError,
)
from wallet.models import Transaction
from wallet.services.balance_service import get_balance, update_user_balance
from wallet.services.exceptions import WalletError

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

STALE_UNCAPTURED_MINUTES = 30

EVENT_CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"
EVENT_ORDER_APPROVED = "CHECKOUT.ORDER.APPROVED"


def _money(v) -> Decimal:
    if v is None or v == "":
        raise DepositAmountError("amount is required")
    try:
        return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise DepositAmountError(f"Invalid amount: {v!r}") from exc


def _cfg() -> dict:
    return settings.PAYMENTS["PAYPAL"]


def calculate_fee(amount) -> tuple[Decimal, Decimal]:
    """Return (fee, net_amount) for a gross deposit amount."""
    gross = _money(amount)
    fee = _money(gross * Decimal(_cfg()["FEE_PERCENT"]) + Decimal(_cfg()["FIXED_FEE"]))
    return fee, _money(gross - fee)


def create_deposit(*, user, amount) -> Deposit:
    gross = _money(amount)
    minimum = _money(_cfg()["MIN_DEPOSIT"])
    if gross < minimum:
        raise DepositAmountError(f"Minimum deposit is {minimum}")

    fee, net = calculate_fee(gross)
    if net <= Decimal("0.00"):
        raise DepositAmountError("Deposit amount does not cover the PayPal fee")

    deposit = Deposit.objects.create(
        user=user,
        amount=gross,
        fee=fee,
        net_amount=net,
        currency=_cfg()["CURRENCY"],
        payment_method=Deposit.METHOD_PAYPAL,
        status=Deposit.STATUS_PENDING,
    )
    logger.info("Deposit created", extra={"deposit_id": str(deposit.id), "amount": str(gross)})
    return deposit


def start_paypal_checkout(deposit: Deposit) -> dict:
    """Create the PayPal order for a pending deposit; returns {paypal_order_id, approve_url}."""
    payload = paypal.create_order(
        amount=deposit.amount,
        currency=deposit.currency,
        custom_id=str(deposit.id),
        description=f"{settings.SITE_NAME} balance top-up",
    )
    deposit.paypal_order_id = str(payload.get("id") or "")
    deposit.save(update_fields=["paypal_order_id", "updated_at"])
    return {"paypal_order_id": deposit.paypal_order_id, "approve_url": paypal.approve_url(payload)}


def _mark_failed(deposit: Deposit, reason: str) -> Deposit:
    deposit.status = Deposit.STATUS_FAILED
    deposit.failure_reason = reason[:255]
    deposit.is_processed = True
    deposit.last_attempt_at = timezone.now()
    deposit.save(update_fields=["status", "failure_reason", "is_processed", "last_attempt_at", "updated_at"])
    logger.warning("Deposit failed", extra={"deposit_id": str(deposit.id), "reason": reason})
    return deposit


def _check_capture(deposit: Deposit, info: dict):
    # an order can be COMPLETED while its capture is still PENDING (review, eCheck)
    if info["capture_status"] != "COMPLETED":
        raise PaymentPendingError(
            f"PayPal payment is not completed (status {info['capture_status'] or info['order_status'] or 'unknown'})"
        )
    if not info["capture_id"]:
        raise PaymentVerificationError("PayPal response has no capture id")
    if info["custom_id"] and info["custom_id"] != str(deposit.id):
        raise PaymentVerificationError("PayPal order belongs to another deposit")
    if info["currency"] and info["currency"] != deposit.currency:
        raise PaymentVerificationError(f"Currency mismatch: expected {deposit.currency}, got {info['currency']}")
    if info["amount"] is None or _money(info["amount"]) < deposit.amount:
        raise PaymentVerificationError(
            f"Amount mismatch: expected {deposit.amount}, got {info['amount']}"
        )


def _store_capture(deposit: Deposit, info: dict, payload: dict):
    deposit.transaction_id = info["capture_id"]
    deposit.paypal_order_id = info["order_id"] or deposit.paypal_order_id
    deposit.payer_email = info["payer_email"][:254]
    deposit.payer_id = info["payer_id"][:64]
    deposit.provider_payload = payload
    deposit.save(
        update_fields=[
            "transaction_id",
            "paypal_order_id",
            "payer_email",
            "payer_id",
            "provider_payload",
            "updated_at",
        ]
    )


def capture_deposit(*, deposit: Deposit, paypal_order_id: str) -> Deposit:
    """
    Capture (or re-read) the PayPal order server-side, verify it pays for
    this deposit, then credit the balance.
    """
    if deposit.status == Deposit.STATUS_COMPLETED:
        return deposit
    if deposit.status == Deposit.STATUS_FAILED:
        raise PaymentVerificationError("Deposit has already failed")

    payload = paypal.capture_order(paypal_order_id)
    info = paypal.extract_capture(payload)

    try:
        _check_capture(deposit, info)
    except PaymentPendingError:
        if info["order_id"] and not deposit.paypal_order_id:
            deposit.paypal_order_id = info["order_id"]
            deposit.save(update_fields=["paypal_order_id", "updated_at"])
        logger.info(
            "PayPal capture not settled, deposit left pending",
            extra={"deposit_id": str(deposit.id), "capture_status": info["capture_status"]},
        )
        raise
    except PaymentVerificationError as exc:
        _mark_failed(deposit, str(exc))
        raise

    _store_capture(deposit, info, payload)
    deposit, _ = process_deposit_balance(deposit)
    return deposit


def _send_deposit_email(deposit: Deposit, new_balance: Decimal):
    send_email_safely(
        to=deposit.user.email,
        email_type=EMAIL_DEPOSIT_SUCCESS,
        data={
            "amount": str(deposit.net_amount),
            "transaction_id": deposit.transaction_id,
            "date": timezone.localtime(deposit.completed_at or timezone.now()).strftime("%Y-%m-%d %H:%M"),
            "new_balance": str(new_balance),
        },
    )


@transaction.atomic
def process_deposit_balance(deposit: Deposit) -> tuple[Deposit, bool]:
    """
    Credit net_amount once. Returns (deposit, credited_now).
    """
    deposit = Deposit.objects.select_for_update().select_related("user").get(pk=deposit.pk)

    if deposit.is_processed or deposit.status != Deposit.STATUS_PENDING:
        return deposit, False

    if not deposit.transaction_id:
        raise PaymentVerificationError("Deposit has no verified PayPal capture")

    deposit.process_attempts += 1
    deposit.last_attempt_at = timezone.now()

    # a ledger line with this capture id means the credit already happened
    if Transaction.objects.filter(
        type=Transaction.TYPE_DEPOSIT, transaction_id=deposit.transaction_id
    ).exists():
        new_balance = get_balance(deposit.user)
        credited = False
    else:
        new_balance = update_user_balance(
            user=deposit.user,
            amount=deposit.net_amount,
            tx_type=Transaction.TYPE_DEPOSIT,
            description=f"PayPal deposit {deposit.amount} {deposit.currency} (fee {deposit.fee})",
            payment_method=Deposit.METHOD_PAYPAL,
            transaction_id=deposit.transaction_id,
        )
        credited = True

    deposit.status = Deposit.STATUS_COMPLETED
    deposit.is_processed = True
    deposit.completed_at = timezone.now()
    deposit.save(
        update_fields=[
            "status",
            "is_processed",
            "completed_at",
            "process_attempts",
            "last_attempt_at",
            "updated_at",
        ]
    )

    if credited:
        notify_user(
            user=deposit.user,
            message=f"Deposit of {deposit.net_amount} credited to your balance",
            notification_type=Notification.TYPE_DEPOSIT,
        )
        notify_admins(
            message=f"Deposit {deposit.amount} {deposit.currency} by {deposit.user.email} completed",
            notification_type=Notification.TYPE_DEPOSIT,
        )
        transaction.on_commit(lambda: _send_deposit_email(deposit, new_balance))
        logger.info(
            "Deposit credited",
            extra={"deposit_id": str(deposit.id), "net_amount": str(deposit.net_amount)},
        )

    return deposit, credited


def _deposit_summary(deposit: Deposit) -> dict:
    return {
        "id": str(deposit.id),
        "user_id": str(deposit.user_id),
        "amount": str(deposit.amount),
        "net_amount": str(deposit.net_amount),
        "status": deposit.status,
        "created_at": deposit.created_at.isoformat() if deposit.created_at else None,
    }


def check_payment(*, transaction_id: str, user=None) -> dict:
    """
    user=None looks across all deposits (back-office); otherwise only the
    user's own deposits are visible.
    """
    transaction_id = (transaction_id or "").strip()
    qs = Deposit.objects.filter(transaction_id=transaction_id)
    if user is not None:
        qs = qs.filter(user=user)
    deposit = qs.first() if transaction_id else None
    if deposit is None:
        raise DepositNotFound("No deposit found with this transaction ID")

    if deposit.status == Deposit.STATUS_COMPLETED:
        return {"success": True, "status": deposit.status, "deposit": _deposit_summary(deposit)}

    if deposit.status == Deposit.STATUS_PENDING:
        deposit, _ = process_deposit_balance(deposit)
        return {
            "success": True,
            "status": deposit.status,
            "message": "Deposit marked as completed and user balance updated",
        }

    return {
        "success": True,
        "status": deposit.status,
        "message": f"Deposit is in {deposit.status} status",
    }


def _find_webhook_deposit(resource: dict) -> Deposit | None:
    capture_id = str(resource.get("id") or "")
    custom_id = str(resource.get("custom_id") or "")
    related = ((resource.get("supplementary_data") or {}).get("related_ids") or {})
    order_id = str(related.get("order_id") or "")

    if capture_id:
        deposit = Deposit.objects.filter(transaction_id=capture_id).first()
        if deposit is not None:
            return deposit
    if custom_id:
        try:
            deposit = Deposit.objects.filter(pk=uuid.UUID(custom_id)).first()
        except ValueError:
            deposit = None
        if deposit is not None:
            return deposit
    if order_id:
        return Deposit.objects.filter(paypal_order_id=order_id).first()
    return None


@transaction.atomic
def _attach_webhook_capture(deposit: Deposit, capture_id: str) -> Deposit:
    """
    Store the verified capture id. A deposit the retry job already failed
    (no capture within the window) is reopened so the capture gets credited.
    """
    deposit = Deposit.objects.select_for_update().get(pk=deposit.pk)
    fields = []

    if deposit.status == Deposit.STATUS_FAILED:
        deposit.status = Deposit.STATUS_PENDING
        deposit.is_processed = False
        deposit.failure_reason = ""
        fields += ["status", "is_processed", "failure_reason"]
        logger.warning(
            "Late PayPal capture reopened a failed deposit",
            extra={"deposit_id": str(deposit.id), "capture_id": capture_id},
        )

    if deposit.transaction_id != capture_id:
        deposit.transaction_id = capture_id
        fields.append("transaction_id")

    if fields:
        deposit.save(update_fields=[*fields, "updated_at"])
    return deposit


def handle_webhook_event(event: dict) -> dict:
    """Signature must already be verified by the caller."""
    event_type = str(event.get("event_type") or "")
    resource = event.get("resource") or {}

    if event_type == EVENT_CAPTURE_COMPLETED:
        deposit = _find_webhook_deposit(resource)
        if deposit is None:
            raise DepositNotFound("Transaction not found")

        if deposit.status == Deposit.STATUS_COMPLETED:
            return {"message": "Transaction already processed"}

        amount = resource.get("amount") or {}
        info = {
            "order_id": deposit.paypal_order_id,
            "order_status": "",
            "capture_id": str(resource.get("id") or ""),
            "capture_status": str(resource.get("status") or "").upper(),
            "amount": amount.get("value"),
            "currency": str(amount.get("currency_code") or "").upper(),
            "custom_id": str(resource.get("custom_id") or ""),
            "payer_email": "",
            "payer_id": "",
        }
        _check_capture(deposit, info)

        deposit = _attach_webhook_capture(deposit, info["capture_id"])
        process_deposit_balance(deposit)
        return {"success": True}

    if event_type == EVENT_ORDER_APPROVED:
        logger.info("PayPal order approved", extra={"paypal_order_id": resource.get("id")})
        return {"received": True, "event_type": event_type}

    return {"received": True}


def _recover_capture(deposit: Deposit) -> bool:
    """Look up an uncaptured deposit's PayPal order; store the capture if it completed."""
    if not deposit.paypal_order_id:
        return False
    payload = paypal.get_order(deposit.paypal_order_id)
    info = paypal.extract_capture(payload)
    if not info["capture_id"]:
        return False
    _check_capture(deposit, info)
    _store_capture(deposit, info, payload)
    return True


def retry_pending_deposits(*, max_attempts: int = 5, max_age_minutes: int = 60, limit: int = 10, now=None) -> dict:
    """
    - captured but uncredited deposits are credited
    - deposits with a PayPal order but no capture are re-read from PayPal
    - deposits with no capture older than 30 minutes are marked failed
    """
    now = now or timezone.now()
    deposits = list(
        Deposit.objects.filter(
            status=Deposit.STATUS_PENDING,
            is_processed=False,
            process_attempts__lt=max_attempts,
            created_at__gt=now - timedelta(minutes=max_age_minutes),
        )
        .select_related("user")
        .order_by("-created_at")[:limit]
    )

    processed = 0
    failed = 0
    deposit_ids = []

    for deposit in deposits:
        try:
            if not deposit.transaction_id:
                try:
                    recovered = _recover_capture(deposit)
                except PayPalError as exc:
                    logger.warning("PayPal lookup failed", extra={"deposit_id": str(deposit.id), "error": str(exc)})
                    recovered = False

                if not recovered:
                    if now - deposit.created_at > timedelta(minutes=STALE_UNCAPTURED_MINUTES):
                        deposit.process_attempts += 1
                        deposit.save(update_fields=["process_attempts"])
                        _mark_failed(deposit, "No PayPal capture received")
                        processed += 1
                        deposit_ids.append(str(deposit.id))
                    else:
                        failed += 1
                    continue

            process_deposit_balance(deposit)
            processed += 1
            deposit_ids.append(str(deposit.id))
        except (PaymentVerificationError, WalletError) as exc:
            failed += 1
            Deposit.objects.filter(pk=deposit.pk).update(
                process_attempts=deposit.process_attempts + 1,
                last_attempt_at=now,
                failure_reason=str(exc)[:255],
            )
            logger.warning("Deposit retry failed", extra={"deposit_id": str(deposit.id), "error": str(exc)})

    return {"success": True, "processed": processed, "failed": failed, "deposit_ids": deposit_ids}


def refresh_balance(user) -> dict:
    """Credit any of the user's captured-but-uncredited deposits, then report the balance."""
    processed = 0
    pending = Deposit.objects.filter(user=user, status=Deposit.STATUS_PENDING, is_processed=False).exclude(
        transaction_id=""
    )
    for deposit in pending:
        _, credited = process_deposit_balance(deposit)
        if credited:
            processed += 1

    return {"balance": get_balance(user), "processed": processed}
