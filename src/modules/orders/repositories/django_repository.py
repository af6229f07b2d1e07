"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
All write operations are wrapped in ``transaction.atomic()`` to ensure
the Order aggregate (Order + OrderItems) is persisted atomically.

Concurrency control on order mutations uses ``select_for_update()``
so two concurrent cancellations cannot both release stock.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Avg, Count, Q, Sum

from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

ZERO = Decimal("0.00")


def _alive_orders():
    return (
        Order.objects.alive()
        .select_related("customer")
        .prefetch_related("items", "status_history")
    )


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, data: Dict[str, Any]) -> Order:
        order = Order(
            customer_id=data["customer_id"],
            idempotency_key=data.get("idempotency_key"),
            notes=data.get("notes", ""),
        )
        for field in ("payment_method", "payment_status"):
            if data.get(field):
                setattr(order, field, data[field])
        order.save()

        order = self.replace_items(order, data.get("items", []))
        logger.info(
            "order.persisted",
            order_id=str(order.id),
            item_count=len(data.get("items", [])),
        )
        return order

    @transaction.atomic
    def replace_items(self, order: Order, items: List[Dict[str, Any]]) -> Order:
        OrderItem.objects.filter(order=order).delete()
        total = ZERO
        for item_data in items:
            item = OrderItem(order=order, **item_data)
            item.save()
            total += item.subtotal

        order.total_amount = total
        order.save(update_fields=["total_amount"])
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve a live order with eager-loaded relations.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return _alive_orders().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """List live orders with optional filters.

        Supported filter keys include ``status``, ``customer_id`` and
        ``created_at__range``.
        """
        queryset = _alive_orders()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve a live order with a row-level lock (SELECT FOR UPDATE).

        Eager-loads items so the caller can iterate over them while the
        row is locked.  Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.select_for_update()
                .alive()
                .prefetch_related("items")
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Look the key up over every order, deleted ones included.

        Keys are unique across the whole table, so a deleted order still
        owns its key.
        """
        return (
            Order.objects.select_related("customer")
            .prefetch_related("items", "status_history")
            .filter(idempotency_key=key)
            .first()
        )

    # ------------------------------------------------------------------
    # Save / Delete (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist (create or update) an order."""
        entity.save()
        logger.info("order.saved", order_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Soft-delete an order by ID."""
        order = self.get_by_id(id)
        if not order:
            return False
        order.delete()
        logger.info("order.soft_deleted", order_id=str(id))
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    @transaction.atomic
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def search(self, query: str) -> List[Order]:
        return list(
            _alive_orders().filter(
                Q(customer__name__icontains=query) | Q(notes__icontains=query)
            )
        )

    def recent(self, limit: int) -> List[Order]:
        return list(_alive_orders()[:limit])

    def statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        queryset = Order.objects.alive()
        if start_date:
            queryset = queryset.filter(created_at__gte=start_date)
        if end_date:
            queryset = queryset.filter(created_at__lte=end_date)

        totals = queryset.aggregate(
            total_orders=Count("id"),
            total_revenue=Sum("total_amount"),
            average_order_value=Avg("total_amount"),
        )
        by_status = {
            row["status"]: {"count": row["count"], "revenue": row["revenue"] or ZERO}
            for row in queryset.order_by()
            .values("status")
            .annotate(count=Count("id"), revenue=Sum("total_amount"))
        }
        average = totals["average_order_value"]
        return {
            "total_orders": totals["total_orders"],
            "total_revenue": totals["total_revenue"] or ZERO,
            "average_order_value": (
                Decimal(str(average)).quantize(Decimal("0.01")) if average is not None else ZERO
            ),
            "orders_by_status": by_status,
        }
