"""Invoice repository interface."""

from __future__ import annotations

from abc import abstractmethod
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.invoices.models import Invoice


class IInvoiceRepository(IRepository["Invoice"]):
    @abstractmethod
    def get_for_order(self, order_id: str) -> Optional[Invoice]:
        """The non-cancelled invoice issued for *order_id*, if any."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Invoice]:
        """Retrieve an invoice with a row-level lock."""

    @abstractmethod
    def get_by_number(self, invoice_number: str) -> Optional[Invoice]:
        """Look an invoice up by its ``INV-...`` reference (case-insensitive)."""

    @abstractmethod
    def recent(self, limit: int) -> List[Invoice]:
        """The *limit* most recently issued invoices."""

    @abstractmethod
    def unpaid(self, due_before: Optional[date] = None) -> List[Invoice]:
        """Issued or overdue invoices, optionally only those due before a date."""

    @abstractmethod
    def statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Invoice count and amounts, overall, per status and per payment method."""

    @abstractmethod
    def monthly_report(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Count and amount per (month, status) for invoices matching *filters*."""
