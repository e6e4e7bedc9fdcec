"""
Abstract base models shared by every domain app.

Base Classes:
    BaseModel: Abstract model with timestamps (created_at, updated_at)
    UUIDModel: BaseModel with a UUID primary key

Usage:
    from core.models import UUIDModel

    class Party(UUIDModel):
        name = models.CharField(max_length=200)

Note:
    Identifiers are UUIDs so they are globally unique, assigned at
    creation and never reused.
"""

from __future__ import annotations

import uuid

from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model providing creation and modification timestamps.

    Fields:
        created_at: Set once when the row is inserted
        updated_at: Refreshed on every save
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last modified",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.pk})"


class UUIDModel(BaseModel):
    """
    BaseModel with a UUID primary key.

    Fields:
        id: UUIDField primary key generated with uuid4
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta(BaseModel.Meta):
        abstract = True
