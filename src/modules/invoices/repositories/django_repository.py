"""Django ORM implementation of the Invoice repository."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Avg, Count, DateField, Q, Sum
from django.db.models.functions import TruncMonth

from modules.invoices.constants import UNPAID_STATES, InvoiceStatus
from modules.invoices.models import Invoice
from modules.invoices.repositories.interfaces import IInvoiceRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def _invoices():
    return Invoice.objects.select_related("customer", "order")


def _breakdown(queryset, field: str) -> Dict[str, Dict[str, Any]]:
    rows = (
        queryset.order_by()
        .values(field)
        .annotate(count=Count("id"), amount=Sum("total_amount"))
    )
    return {row[field]: {"count": row["count"], "amount": row["amount"] or ZERO} for row in rows}


class InvoiceDjangoRepository(IInvoiceRepository):
    def get_by_id(self, id: str) -> Optional[Invoice]:
        try:
            return _invoices().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Invoice]:
        try:
            return Invoice.objects.select_for_update().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_number(self, invoice_number: str) -> Optional[Invoice]:
        return _invoices().filter(invoice_number__iexact=invoice_number).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Invoice]:
        queryset = _invoices()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Invoice) -> Invoice:
        entity.save()
        logger.info("invoice.saved", invoice_id=str(entity.id), status=entity.status)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Cancel an invoice; invoices are never physically removed."""
        invoice = self.get_by_id(id)
        if not invoice:
            return False
        invoice.status = InvoiceStatus.CANCELLED
        invoice.save(update_fields=["status"])
        return True

    def get_for_order(self, order_id: str) -> Optional[Invoice]:
        return (
            Invoice.objects.filter(order_id=order_id)
            .exclude(status=InvoiceStatus.CANCELLED)
            .first()
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def recent(self, limit: int) -> List[Invoice]:
        return list(_invoices().order_by("-issue_date", "-id")[:limit])

    def unpaid(self, due_before: Optional[date] = None) -> List[Invoice]:
        queryset = _invoices().filter(status__in=UNPAID_STATES)
        if due_before is None:
            return list(queryset.order_by("-issue_date", "-id"))
        return list(queryset.filter(due_date__lt=due_before).order_by("due_date", "id"))

    def statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        queryset = Invoice.objects.all()
        if start_date:
            queryset = queryset.filter(issue_date__gte=start_date)
        if end_date:
            queryset = queryset.filter(issue_date__lte=end_date)

        totals = queryset.aggregate(
            total_invoices=Count("id"),
            total_amount=Sum("total_amount"),
            average_invoice_value=Avg("total_amount"),
            paid_amount=Sum("total_amount", filter=Q(status=InvoiceStatus.PAID)),
            outstanding_amount=Sum("total_amount", filter=Q(status__in=UNPAID_STATES)),
        )
        average = totals["average_invoice_value"]
        return {
            "total_invoices": totals["total_invoices"],
            "total_amount": totals["total_amount"] or ZERO,
            "average_invoice_value": (
                Decimal(str(average)).quantize(Decimal("0.01")) if average is not None else ZERO
            ),
            "paid_amount": totals["paid_amount"] or ZERO,
            "outstanding_amount": totals["outstanding_amount"] or ZERO,
            "invoices_by_status": _breakdown(queryset, "status"),
            "invoices_by_payment_method": _breakdown(queryset, "payment_method"),
        }

    def monthly_report(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        rows = (
            Invoice.objects.filter(**filters)
            .order_by()
            .annotate(month=TruncMonth("issue_date", output_field=DateField()))
            .values("month", "status")
            .annotate(count=Count("id"), total_amount=Sum("total_amount"))
            .order_by("-month", "status")
        )
        return [{**row, "total_amount": row["total_amount"] or ZERO} for row in rows]
