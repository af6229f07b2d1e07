"""Invoice model.

An invoice is issued either from an order (amount and customer copied
from it) or manually for a customer.  Paying an invoice marks the linked
order as paid.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from modules.core.models import BaseModel, ReferenceNumberMixin
from modules.invoices.constants import InvoiceStatus
from modules.orders.constants import PaymentMethod


class Invoice(ReferenceNumberMixin, BaseModel):
    reference_field = "invoice_number"
    reference_prefix = "INV"

    invoice_number = models.CharField(max_length=20, unique=True, editable=False)
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoices",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
    )
    payment_method = models.CharField(
        max_length=20, choices=PaymentMethod.choices, default=PaymentMethod.CASH
    )
    payment_notes = models.TextField(blank=True, default="")
    issue_date = models.DateTimeField(default=timezone.now)
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(
        max_length=20, choices=InvoiceStatus.choices, default=InvoiceStatus.ISSUED
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "invoices"
        ordering = ["-issue_date"]
        indexes = [
            models.Index(fields=["status"], name="invoices_status_idx"),
            models.Index(fields=["-issue_date"], name="invoices_issue_idx"),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.assign_reference()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.invoice_number} ({self.status})"
