# siteconfig/models.py

from django.db import models


class SiteSetting(models.Model):
    """
    Key/value site settings editable from the back-office.

    is_public rows are readable without authentication (e.g. "currency",
    "announcement"); the rest are back-office only.
    """

    key = models.CharField(max_length=100, unique=True)
    value = models.JSONField(default=dict, blank=True)
    is_public = models.BooleanField(default=False)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self):
        return self.key
