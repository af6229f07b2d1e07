"""Django ORM implementation of the PreOrder repository.

Null Object style: look-ups return ``None`` for missing or malformed IDs.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Avg, Count, Q, Sum

from modules.pre_orders.constants import PreOrderStatus
from modules.pre_orders.models import PreOrder, PreOrderItem
from modules.pre_orders.repositories.interfaces import IPreOrderRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def _pre_orders():
    return PreOrder.objects.select_related("customer", "converted_to_order").prefetch_related(
        "items"
    )


class PreOrderDjangoRepository(IPreOrderRepository):
    """Concrete PreOrder repository backed by Django ORM."""

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> PreOrder:
        pre_order = PreOrder(
            customer_id=data["customer_id"],
            deposit=data.get("deposit") or Decimal("0.00"),
            expected_date=data.get("expected_date"),
            notes=data.get("notes", ""),
        )
        pre_order.save()
        return self.replace_items(pre_order, data.get("items", []))

    @transaction.atomic
    def replace_items(
        self, pre_order: PreOrder, items: List[Dict[str, Any]]
    ) -> PreOrder:
        PreOrderItem.objects.filter(pre_order=pre_order).delete()
        total = Decimal("0.00")
        for item_data in items:
            item = PreOrderItem.objects.create(pre_order=pre_order, **item_data)
            total += item.subtotal
        pre_order.total_estimated_amount = total
        pre_order.save(update_fields=["total_estimated_amount"])
        return pre_order

    def get_by_id(self, id: str) -> Optional[PreOrder]:
        try:
            return _pre_orders().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[PreOrder]:
        try:
            return (
                PreOrder.objects.select_for_update()
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[PreOrder]:
        queryset = _pre_orders()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: PreOrder) -> PreOrder:
        entity.save()
        logger.info("pre_order.saved", pre_order_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Cancel a pre-order (pre-orders are never physically removed)."""
        pre_order = self.get_by_id(id)
        if not pre_order:
            return False
        pre_order.status = PreOrderStatus.CANCELLED
        pre_order.save(update_fields=["status"])
        return True

    def overdue(self, today: date) -> List[PreOrder]:
        return list(
            _pre_orders()
            .filter(status=PreOrderStatus.WAITING, expected_date__lt=today)
            .order_by("expected_date")
        )

    def search(self, query: str) -> List[PreOrder]:
        return list(
            _pre_orders().filter(
                Q(pre_order_code__icontains=query)
                | Q(notes__icontains=query)
                | Q(customer__name__icontains=query)
                | Q(customer__phone__icontains=query)
            )
        )

    def recent(self, limit: int) -> List[PreOrder]:
        return list(_pre_orders().order_by("-created_at", "-id")[:limit])

    def statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        queryset = PreOrder.objects.all()
        if start_date:
            queryset = queryset.filter(created_at__gte=start_date)
        if end_date:
            queryset = queryset.filter(created_at__lte=end_date)

        totals = queryset.aggregate(
            total_pre_orders=Count("id"),
            total_estimated_revenue=Sum("total_estimated_amount"),
            total_deposits=Sum("deposit"),
            average_pre_order_value=Avg("total_estimated_amount"),
        )
        by_status = {
            row["status"]: {
                "count": row["count"],
                "estimated_revenue": row["estimated_revenue"] or ZERO,
                "deposits": row["deposits"] or ZERO,
            }
            for row in queryset.order_by()
            .values("status")
            .annotate(
                count=Count("id"),
                estimated_revenue=Sum("total_estimated_amount"),
                deposits=Sum("deposit"),
            )
        }
        average = totals["average_pre_order_value"]
        return {
            "total_pre_orders": totals["total_pre_orders"],
            "total_estimated_revenue": totals["total_estimated_revenue"] or ZERO,
            "total_deposits": totals["total_deposits"] or ZERO,
            "average_pre_order_value": (
                Decimal(str(average)).quantize(Decimal("0.01")) if average is not None else ZERO
            ),
            "pre_orders_by_status": by_status,
        }
