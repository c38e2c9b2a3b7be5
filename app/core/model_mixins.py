"""
Model mixins providing reusable functionality for Django models.

Available Mixins:
    UUIDPrimaryKeyMixin: Use a UUID as primary key

Usage:
    from core.models import BaseModel
    from core.model_mixins import UUIDPrimaryKeyMixin

    class Event(UUIDPrimaryKeyMixin, BaseModel):
        title = models.CharField(max_length=200)
"""

from __future__ import annotations

import uuid

from django.db import models


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use a UUID as primary key instead of an auto-increment integer.

    Event and booking identifiers travel to the payment processor as
    transfer metadata and idempotency keys, so they must be globally
    unique and must not reveal record counts.

    Fields:
        id: UUIDField primary key (generated on instantiation)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True
