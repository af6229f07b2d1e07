"""Customer repository interface.

Extends ``IRepository[Customer]`` with the look-ups needed for the
phone-uniqueness rule and for other modules that only need to know
whether a customer can place orders.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.customers.models import Customer


class ICustomerRepository(IRepository["Customer"]):
    """Repository contract for the Customer aggregate."""

    @abstractmethod
    def get_active_by_phone(
        self, phone: str, exclude_id: Optional[str] = None
    ) -> Optional[Customer]:
        """Retrieve the active customer owning *phone*, if any."""

    @abstractmethod
    def exists(self, id: str) -> bool:
        """Return ``True`` when an active customer with *id* exists."""
