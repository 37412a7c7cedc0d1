# wallet/tests/test_idempotency.py

import base64
import json
import re

from django.contrib.auth import get_user_model
from django.test import TestCase

from wallet.models import IdempotencyRecord
from wallet.services.exceptions import IdempotencyConflictError
from wallet.services.idempotency import (
    generate_idempotency_key,
    generate_random_idempotency_key,
    process_with_idempotency,
)

User = get_user_model()


class IdempotencyKeyFormatTests(TestCase):
    def test_deterministic_fingerprint(self):
        key = generate_idempotency_key("purchase", {"product_id": "p1", "quantity": 2, "promo": None})

        prefix, segment, fingerprint = key.split("_", 2)
        self.assertEqual(prefix, "purchase")
        self.assertRegex(segment, r"^[0-9a-f]{8}$")

        expected = base64.b64encode(
            json.dumps({"product_id": "p1", "quantity": 2}, sort_keys=True, separators=(",", ":")).encode()
        ).decode()[:16]
        self.assertEqual(fingerprint, expected)

    def test_random_key(self):
        key = generate_random_idempotency_key("deposit")
        self.assertTrue(re.match(r"^deposit_[0-9a-f-]{36}$", key))


class ProcessWithIdempotencyTests(TestCase):
    """
    GUARANTEES:
    - A key runs its function at most once after success
    - A key still processing is a conflict
    - A failed key may run again
    - A key cannot be reused for another request type or user
    """

    def setUp(self):
        self.user = User.objects.create_user(email="idem@example.com", password="pass12345")
        self.calls = 0

    def _fn(self):
        self.calls += 1
        return {"call": self.calls}

    def test_success_is_replayed(self):
        first = process_with_idempotency(key="k-1", request_type="purchase", user=self.user, fn=self._fn)
        second = process_with_idempotency(key="k-1", request_type="purchase", user=self.user, fn=self._fn)

        self.assertTrue(first.is_new)
        self.assertFalse(second.is_new)
        self.assertEqual(second.result, {"call": 1})
        self.assertEqual(self.calls, 1)

    def test_processing_key_conflicts(self):
        IdempotencyRecord.objects.create(
            key="k-2", request_type="purchase", user=self.user, status=IdempotencyRecord.STATUS_PROCESSING
        )

        with self.assertRaises(IdempotencyConflictError):
            process_with_idempotency(key="k-2", request_type="purchase", user=self.user, fn=self._fn)
        self.assertEqual(self.calls, 0)

    def test_errored_key_runs_again(self):
        def boom():
            raise ValueError("upstream down")

        with self.assertRaises(ValueError):
            process_with_idempotency(key="k-3", request_type="purchase", user=self.user, fn=boom)
        record = IdempotencyRecord.objects.get(key="k-3")
        self.assertEqual(record.status, IdempotencyRecord.STATUS_ERROR)
        self.assertIn("upstream down", record.error_message)

        result = process_with_idempotency(key="k-3", request_type="purchase", user=self.user, fn=self._fn)
        self.assertTrue(result.is_new)
        record.refresh_from_db()
        self.assertEqual(record.status, IdempotencyRecord.STATUS_SUCCESS)

    def test_key_bound_to_request_type_and_user(self):
        process_with_idempotency(key="k-4", request_type="purchase", user=self.user, fn=self._fn)
        other = User.objects.create_user(email="other@example.com", password="pass12345")

        with self.assertRaises(IdempotencyConflictError):
            process_with_idempotency(key="k-4", request_type="deposit", user=self.user, fn=self._fn)
        with self.assertRaises(IdempotencyConflictError):
            process_with_idempotency(key="k-4", request_type="purchase", user=other, fn=self._fn)

    def test_blank_key_always_runs(self):
        process_with_idempotency(key="", request_type="purchase", user=self.user, fn=self._fn)
        process_with_idempotency(key="  ", request_type="purchase", user=self.user, fn=self._fn)

        self.assertEqual(self.calls, 2)
        self.assertFalse(IdempotencyRecord.objects.exists())
