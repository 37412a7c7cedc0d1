# wallet/services/idempotency.py

"""
IDEMPOTENCY KEYS

Purpose:
- Generate client/server idempotency keys for purchase and deposit requests.
- Run a request at most once per key, replaying the stored result on retries.

Key formats:
- generate_idempotency_key("purchase", {...})
    -> "purchase_<first uuid4 segment>_<16 chars of base64(sorted JSON)>"
- generate_random_idempotency_key("deposit")
    -> "deposit_<uuid4>"

Record lifecycle:
- new key            -> processing -> success (payload stored) | error
- success key        -> cached payload, is_new=False
- processing key     -> IdempotencyConflictError (request still running)
- error key          -> allowed to run again
"""

from __future__ import annotations

import base64
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable

from django.db import IntegrityError, transaction

from wallet.models import IdempotencyRecord
from wallet.services.exceptions import IdempotencyConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdempotentResult:
    result: Any
    is_new: bool


def generate_idempotency_key(prefix: str, data: dict | None = None) -> str:
    payload = {k: v for k, v in sorted((data or {}).items()) if v is not None}
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    fingerprint = base64.b64encode(encoded.encode("utf-8")).decode("ascii")[:16]
    segment = str(uuid.uuid4()).split("-")[0]
    return f"{prefix}_{segment}_{fingerprint}"


def generate_random_idempotency_key(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4()}"


def _claim(*, key: str, request_type: str, user) -> tuple[IdempotencyRecord, bool]:
    """
    Create the record in STATUS_PROCESSING, or return the existing one.
    The unique constraint on key settles concurrent first attempts.
    """
    try:
        with transaction.atomic():
            record = IdempotencyRecord.objects.create(
                key=key,
                request_type=request_type,
                user=user,
                status=IdempotencyRecord.STATUS_PROCESSING,
            )
        return record, True
    except IntegrityError:
        return IdempotencyRecord.objects.get(key=key), False


def process_with_idempotency(
    *,
    key: str,
    request_type: str,
    user,
    fn: Callable[[], Any],
) -> IdempotentResult:
    """
    Run fn() once for key. fn must return a JSON-serialisable value; it is
    stored and replayed for later calls with the same key.
    Exceptions raised by fn are recorded and re-raised.
    """
    key = (key or "").strip()
    if not key:
        return IdempotentResult(result=fn(), is_new=True)

    record, created = _claim(key=key, request_type=request_type, user=user)

    if not created:
        if record.request_type != request_type or (
            user is not None and record.user_id not in (None, user.pk)
        ):
            raise IdempotencyConflictError("Idempotency key was already used for another request")

        if record.status == IdempotencyRecord.STATUS_SUCCESS:
            logger.info("Idempotent replay", extra={"key": key, "request_type": request_type})
            return IdempotentResult(result=record.response_payload, is_new=False)

        if record.status == IdempotencyRecord.STATUS_PROCESSING:
            raise IdempotencyConflictError("A request with this idempotency key is still processing")

        # previous attempt failed: run again under the same key
        record.status = IdempotencyRecord.STATUS_PROCESSING
        record.error_message = ""
        record.save(update_fields=["status", "error_message", "updated_at"])

    try:
        result = fn()
    except Exception as exc:
        record.status = IdempotencyRecord.STATUS_ERROR
        record.error_message = str(exc)[:2000]
        record.save(update_fields=["status", "error_message", "updated_at"])
        raise

    record.status = IdempotencyRecord.STATUS_SUCCESS
    record.response_payload = result
    record.save(update_fields=["status", "response_payload", "updated_at"])
    return IdempotentResult(result=result, is_new=True)
