"""
Abstract base for store-scoped finance records.
"""

from __future__ import annotations

import uuid

from django.db import models

from core.models import UUIDModel
from finance.exceptions import CrossStoreAccess


class StoreScopedModel(UUIDModel):
    """
    UUIDModel owned by exactly one store.

    The store catalog lives outside this app, so the owner is stored as a
    bare UUID rather than a foreign key.

    Fields:
        store_id: UUID of the owning store
    """

    store_id = models.UUIDField(
        db_index=True,
        help_text="Store that owns this record",
    )

    class Meta(UUIDModel.Meta):
        abstract = True

    def ensure_store(self, store_id: uuid.UUID | str) -> None:
        """
        Verify this record belongs to ``store_id``.

        Raises:
            CrossStoreAccess: If the record is owned by another store
        """
        if str(self.store_id) != str(store_id):
            name = self.__class__.__name__
            raise CrossStoreAccess(
                f"{name} {self.pk} does not belong to store {store_id}",
                details={
                    "record": name.lower(),
                    "record_id": str(self.pk),
                    "store_id": str(store_id),
                },
            )
