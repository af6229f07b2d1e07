"""Customer model.

Business rules implemented:
- Phone number is unique among *active* customers (enforced at service layer,
  a deactivated customer's number can be reused).
- Deleting a customer deactivates it (``is_active=False``); orders keep
  pointing at it.
- Phone numbers are masked in ``__str__`` (and in logs by the structlog
  processor).
"""

from __future__ import annotations

import re

from django.db import models

from modules.core.models import BaseModel


def normalize_phone(value: str) -> str:
    """Drop spaces, dots, dashes and parentheses; keep a leading ``+``."""
    return re.sub(r"[\s.\-()]", "", value or "")


class Customer(BaseModel):
    """Customer aggregate root."""

    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, db_index=True)
    email = models.EmailField(max_length=254, blank=True, default="")
    address = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["-created_at"], name="customers_created_idx"),
            models.Index(fields=["is_active"], name="customers_active_idx"),
        ]

    def save(self, *args, **kwargs) -> None:
        self.phone = normalize_phone(self.phone)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        suffix = self.phone[-3:] if self.phone else "???"
        return f"{self.name} (***{suffix})"
