"""Order repository interface.

Extends ``IRepository[Order]`` with methods required by the Order
aggregate: atomic creation with items, wholesale item replacement,
status history tracking, row locking and the reporting queries.

The Service Layer depends exclusively on this contract (DIP).
Soft-deleted orders are invisible to every look-up except
``get_by_idempotency_key``.
"""

from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The Order aggregate includes OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> Order:
        """Create an order with its items atomically.

        ``data`` must include ``customer_id`` and ``items`` (list of dicts
        with the OrderItem snapshot fields), and optionally
        ``idempotency_key``, ``notes``, ``payment_method`` and
        ``payment_status``.
        """

    @abstractmethod
    def replace_items(self, order: Order, items: List[Dict[str, Any]]) -> Order:
        """Drop the order's items, persist *items*, recompute the total."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key, soft-deleted or not."""

    @abstractmethod
    def search(self, query: str) -> List[Order]:
        """Orders whose customer name or notes contain *query*."""

    @abstractmethod
    def recent(self, limit: int) -> List[Order]:
        """The *limit* most recently created orders."""

    @abstractmethod
    def statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Order count, revenue and average, overall and per status."""
