"""Orders, their line items and the status audit trail.

An order's ``total_amount`` is always the sum of its item subtotals, and
each item freezes what the customer bought (price, team, size, season,
printing) so later catalogue edits or product removal leave history intact.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, ReferenceNumberMixin, SoftDeleteModel
from modules.orders.constants import (
    TERMINAL_STATES,
    AgeGroup,
    HomeOrAway,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    can_transition,
)

MONEY = {"max_digits": 12, "decimal_places": 2}


class Order(ReferenceNumberMixin, SoftDeleteModel):
    """A customer's purchase.

    ``order_number`` (``ORD-YYYYMMDD-XXXXXX``) is for people; the UUID is
    what the API uses.  A client-supplied ``idempotency_key`` makes a
    retried create return the first order; orders without one store NULL.
    """

    reference_field = "order_number"
    reference_prefix = "ORD"

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    # PROTECT: a customer with orders is deactivated, never removed.
    customer = models.ForeignKey(
        "customers.Customer", on_delete=models.PROTECT, related_name="orders"
    )
    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.CREATED
    )
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.UNPAID
    )
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )
    total_amount = models.DecimalField(**MONEY, default=Decimal("0.00"))
    notes = models.TextField(blank=True, default="")
    idempotency_key = models.CharField(max_length=255, unique=True, null=True, blank=True)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return can_transition(self.status, new_status)

    def stock_lines(self) -> list[tuple[Any, int]]:
        """``(product_id, quantity)`` for every item, for the inventory ledger."""
        return [(item.product_id, item.quantity) for item in self.items.all()]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.assign_reference()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class OrderItem(BaseModel):
    """One purchased line; replaced wholesale when the order's items change."""

    order = models.ForeignKey("orders.Order", on_delete=models.CASCADE, related_name="items")
    # Weak reference: the snapshot below survives the product's removal.
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="order_items",
    )
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(**MONEY)
    subtotal = models.DecimalField(**MONEY, editable=False)
    team_name = models.CharField(max_length=255, blank=True, default="")
    category = models.CharField(max_length=100, blank=True, default="")
    size = models.CharField(max_length=20, blank=True, default="")
    season = models.CharField(max_length=50, blank=True, default="")
    image = models.CharField(max_length=500, blank=True, default="")
    home_or_away = models.CharField(
        max_length=10, choices=HomeOrAway.choices, default=HomeOrAway.HOME
    )
    age_group = models.CharField(
        max_length=10, choices=AgeGroup.choices, default=AgeGroup.ADULT
    )
    print_name = models.CharField(max_length=100, blank=True, default="")
    print_number = models.CharField(max_length=10, blank=True, default="")

    class Meta:
        db_table = "order_items"
        ordering = ["created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.subtotal = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.team_name} {self.size} x{self.quantity} ({self.subtotal})"


class OrderStatusHistory(BaseModel):
    """Append-only record of status changes; ``old_status`` is empty on creation."""

    order = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="status_history"
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20, choices=OrderStatus.choices, null=True, blank=True
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["order", "-created_at"], name="osh_order_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"
