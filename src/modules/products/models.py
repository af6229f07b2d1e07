"""Product model: the catalogue entry and its stock balance.

Business rules implemented:
- ``quantity`` is never negative (``PositiveIntegerField`` + CHECK constraint).
- ``price`` is never negative.
- Deleting a product deactivates it (``is_active=False``); historical order
  items keep referencing it.
- (team, category, size, type) is unique (enforced at service layer).
"""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel


class Product(BaseModel):
    """Product aggregate root.

    ``images`` holds ``{"url": ..., "public_id": ...}`` entries; the
    ``public_id`` is the storage name used to delete the blob.
    """

    name = models.CharField(max_length=255, db_index=True)
    team_name = models.CharField(max_length=255, db_index=True)
    category = models.CharField(max_length=100, blank=True, default="")
    type = models.CharField(max_length=100, blank=True, default="")
    size = models.CharField(max_length=20)
    color = models.CharField(max_length=50, blank=True, default="")
    season = models.CharField(max_length=50, blank=True, default="")
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    quantity = models.PositiveIntegerField(default=0)
    images = models.JSONField(default=list, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "products"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["team_name", "size", "category"],
                name="products_team_size_cat_idx",
            ),
            models.Index(fields=["is_active", "quantity"], name="products_stock_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name="products_quantity_non_negative",
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="products_price_non_negative",
            ),
        ]

    @property
    def primary_image(self) -> str:
        """URL of the first image, or an empty string."""
        if self.images:
            return self.images[0].get("url", "")
        return ""

    def __str__(self) -> str:
        return f"{self.team_name} {self.category} {self.size}".strip()
