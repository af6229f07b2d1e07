"""PreOrder and PreOrderItem models.

Business rules implemented:
- ``pre_order_code`` auto-generated (``PRE-YYYYMMDD-XXXXXX``).
- Items are free-form wishes, not tied to catalogue products.
- ``total_estimated_amount`` is ``sum(quantity * estimated_price)``.
- ``converted_to_order`` is set exactly once; afterwards the pre-order
  is read-only (enforced at service layer).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, ReferenceNumberMixin
from modules.pre_orders.constants import VALID_TRANSITIONS, PreOrderStatus


class PreOrder(ReferenceNumberMixin, BaseModel):
    """Customer request for items not yet in stock."""

    reference_field = "pre_order_code"
    reference_prefix = "PRE"

    pre_order_code = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="pre_orders",
    )
    status = models.CharField(
        max_length=20,
        choices=PreOrderStatus.choices,
        default=PreOrderStatus.WAITING,
    )
    total_estimated_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    deposit = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0"))],
    )
    expected_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    converted_to_order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="source_pre_order",
    )

    class Meta:
        db_table = "pre_orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="pre_orders_status_idx"),
            models.Index(fields=["expected_date"], name="pre_orders_expected_idx"),
        ]

    @property
    def is_converted(self) -> bool:
        return self.converted_to_order_id is not None

    @property
    def is_overdue(self) -> bool:
        return (
            self.status == PreOrderStatus.WAITING
            and self.expected_date is not None
            and self.expected_date < timezone.localdate()
        )

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.assign_reference()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.pre_order_code} ({self.status})"


class PreOrderItem(BaseModel):
    pre_order = models.ForeignKey(
        "pre_orders.PreOrder",
        on_delete=models.CASCADE,
        related_name="items",
    )
    name = models.CharField(max_length=255)
    team_name = models.CharField(max_length=255)
    category = models.CharField(max_length=100, blank=True, default="")
    size = models.CharField(max_length=20)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    estimated_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "pre_order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="pre_order_items_quantity_positive",
            ),
        ]

    @property
    def subtotal(self) -> Decimal:
        return self.quantity * self.estimated_price

    def __str__(self) -> str:
        return f"{self.name} {self.size} x{self.quantity}"
