"""Pre-order repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.pre_orders.models import PreOrder


class IPreOrderRepository(IRepository["PreOrder"]):
    """Repository contract for the PreOrder aggregate (PreOrder + items)."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> PreOrder:
        """Create a pre-order with its items; computes the estimated total."""

    @abstractmethod
    def replace_items(self, pre_order: PreOrder, items: List[Dict[str, Any]]) -> PreOrder:
        """Drop the pre-order's items, persist *items*, recompute the total."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[PreOrder]:
        """Retrieve a pre-order with a row-level lock (SELECT FOR UPDATE)."""

    @abstractmethod
    def overdue(self, today: date) -> List[PreOrder]:
        """WAITING pre-orders whose ``expected_date`` is before *today*."""

    @abstractmethod
    def search(self, query: str) -> List[PreOrder]:
        """Pre-orders whose code, notes, customer name or phone contain *query*."""

    @abstractmethod
    def recent(self, limit: int) -> List[PreOrder]:
        """The *limit* most recently created pre-orders."""

    @abstractmethod
    def statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Count, estimated revenue and deposits, overall and per status."""
