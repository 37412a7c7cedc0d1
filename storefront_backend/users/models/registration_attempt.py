# users/models/registration_attempt.py

from django.db import models


class RegistrationAttempt(models.Model):
    """
    Sliding registration counter per email.

    attempt_count resets when the window (SECURITY_POLICY) has elapsed since
    first_attempt_at; locked_until is set once the limit is hit.
    """

    email = models.EmailField(unique=True)
    attempt_count = models.PositiveIntegerField(default=0)
    first_attempt_at = models.DateTimeField()
    last_attempt_at = models.DateTimeField()
    locked_until = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-last_attempt_at"]

    def __str__(self):
        return f"{self.email} x{self.attempt_count}"
