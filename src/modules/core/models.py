"""Abstract models and helpers shared by the store modules.

Every table gets a time-ordered UUIDv7 key plus ``created_at`` /
``updated_at``.  Orders additionally soft-delete through ``deleted_at``;
``Order.objects`` stays unfiltered and callers ask for ``.alive()`` rows.
Orders, pre-orders and invoices carry a human-readable reference such as
``ORD-20260101-A1B2C3`` next to the UUID.
"""

from __future__ import annotations

import secrets

import uuid6
from django.db import models
from django.utils import timezone

REFERENCE_MAX_RETRIES = 5


def generate_reference(prefix: str) -> str:
    """``<PREFIX>-YYYYMMDD-XXXXXX``: today's date and 3 random bytes in hex."""
    return f"{prefix}-{timezone.now():%Y%m%d}-{secrets.token_hex(3).upper()}"


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs) -> None:
        # auto_now fields are skipped unless listed in update_fields.
        fields = kwargs.get("update_fields")
        if fields is not None and "updated_at" not in fields:
            kwargs["update_fields"] = [*fields, "updated_at"]
        super().save(*args, **kwargs)


class ReferenceNumberMixin:
    """Fills ``reference_field`` with a fresh ``reference_prefix`` number
    the first time the row is saved."""

    reference_field: str = ""
    reference_prefix: str = ""

    def assign_reference(self) -> None:
        if getattr(self, self.reference_field):
            return
        taken = type(self)._default_manager
        for _ in range(REFERENCE_MAX_RETRIES):
            candidate = generate_reference(self.reference_prefix)
            if not taken.filter(**{self.reference_field: candidate}).exists():
                setattr(self, self.reference_field, candidate)
                return
        raise RuntimeError(
            f"Could not allocate a unique {self.reference_field} "
            f"in {REFERENCE_MAX_RETRIES} attempts"
        )


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self) -> SoftDeleteQuerySet:
        return self.filter(deleted_at__isnull=True)

    def delete(self) -> tuple[int, dict[str, int]]:
        """Stamp ``deleted_at`` on every live row instead of removing it."""
        now = timezone.now()
        count = self.alive().update(deleted_at=now, updated_at=now)
        return count, {self.model._meta.label: count}


class SoftDeleteManager(models.Manager.from_queryset(SoftDeleteQuerySet)):
    pass


class SoftDeleteModel(BaseModel):
    deleted_at = models.DateTimeField(null=True, blank=True, default=None, db_index=True)

    objects = SoftDeleteManager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def mark_deleted(self) -> None:
        """Stamp ``deleted_at`` without saving so other fields go in the same write."""
        if self.deleted_at is None:
            self.deleted_at = timezone.now()

    def delete(self, using=None, keep_parents=False) -> tuple[int, dict[str, int]]:
        if self.is_deleted:
            return 0, {}
        self.mark_deleted()
        self.save(update_fields=["deleted_at"])
        return 1, {self._meta.label: 1}
