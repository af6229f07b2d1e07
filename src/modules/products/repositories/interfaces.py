"""Product repository interface.

Extends ``IRepository[Product]`` with the duplicate look-up and the two
atomic stock updates the inventory ledger is built on.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, List, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_by_attributes(
        self,
        team_name: str,
        category: str,
        size: str,
        type: str,
        exclude_id: Optional[str] = None,
    ) -> Optional[Product]:
        """Retrieve the product with the given identifying attributes."""

    @abstractmethod
    def decrement_stock(self, id: str, quantity: int) -> bool:
        """Subtract *quantity* if the product is active and has enough stock.

        Must be a single conditional update.  Returns ``True`` when a row
        was changed.
        """

    @abstractmethod
    def increment_stock(self, id: str, quantity: int) -> bool:
        """Add *quantity* to the product's stock.  ``False`` if no such row."""

    @abstractmethod
    def low_stock(self, threshold: int) -> List[Product]:
        """Active products with ``quantity <= threshold``, lowest first."""
