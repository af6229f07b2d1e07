"""Inventory ledger: the only code path that changes ``Product.quantity``
on behalf of orders.

Every product carries a single running balance.  Reservations decrement it
with one conditional ``UPDATE ... WHERE quantity >= qty`` so two concurrent
buyers can never both take the last unit; releases increment it
unconditionally.  Callers wrap multi-item workflows in ``transaction.atomic``
so a failed reservation rolls back the ones before it.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Dict, Iterable, List, Tuple

import structlog

from modules.inventory.exceptions import (
    InactiveProduct,
    InsufficientStock,
    InvalidQuantity,
    StockContention,
)
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from modules.products.models import Product
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

StockLine = Tuple[str, int]

RESERVE_ATTEMPTS = 2


def _validate_quantity(qty) -> int:
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
        raise InvalidQuantity(f"Quantity must be a positive integer, got {qty!r}.")
    return qty


def aggregate_lines(lines: Iterable[StockLine]) -> List[StockLine]:
    """Sum quantities per product and order the result by product id.

    A stable order means two transactions touching the same products lock
    their rows in the same sequence.
    """
    totals: Dict[str, int] = defaultdict(int)
    for product_id, qty in lines:
        totals[str(product_id)] += _validate_quantity(qty)
    return sorted(totals.items())


class InventoryLedger:
    """Stock primitives over the product repository."""

    def __init__(self, product_repository: IProductRepository) -> None:
        self._products = product_repository

    def check_availability(self, product_id, required_qty: int) -> Product:
        """Return the product when it can cover *required_qty*.

        Raises:
            ProductNotFound: no such product.
            InactiveProduct: the product is deactivated.
            InsufficientStock: ``quantity < required_qty``.
        """
        _validate_quantity(required_qty)
        product = self._products.get_by_id(product_id)
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found.")
        if not product.is_active:
            raise InactiveProduct(f"Product {product.name} is not active.")
        if product.quantity < required_qty:
            raise InsufficientStock(product.id, product.quantity, required_qty)
        return product

    def reserve(self, product_id, qty: int) -> None:
        """Atomically take *qty* units out of stock.

        When the conditional update matches nothing the row is re-read to
        raise the precise error.  If the re-read shows enough stock (a
        release landed in between) the update is retried once.

        Raises:
            ProductNotFound / InactiveProduct / InsufficientStock.
            StockContention: the balance moved under both attempts.
        """
        _validate_quantity(qty)
        for _ in range(RESERVE_ATTEMPTS):
            if self._products.decrement_stock(product_id, qty):
                logger.info("inventory.reserved", product_id=str(product_id), quantity=qty)
                return
            self.check_availability(product_id, qty)
        logger.warning("inventory.reserve_contended", product_id=str(product_id), quantity=qty)
        raise StockContention(
            f"Stock of product {product_id} changed during the reservation; retry."
        )

    def release(self, product_id, qty: int) -> None:
        """Atomically return *qty* units to stock.

        A product row that no longer exists is skipped: the item is history.
        """
        _validate_quantity(qty)
        if product_id is None or not self._products.increment_stock(product_id, qty):
            logger.warning(
                "inventory.release_skipped",
                product_id=str(product_id),
                quantity=qty,
            )
            return
        logger.info("inventory.released", product_id=str(product_id), quantity=qty)

    def reserve_items(self, lines: Iterable[StockLine]) -> None:
        for product_id, qty in aggregate_lines(lines):
            self.reserve(product_id, qty)

    def release_items(self, lines: Iterable[StockLine]) -> None:
        for product_id, qty in aggregate_lines(
            (pid, qty) for pid, qty in lines if pid is not None
        ):
            self.release(product_id, qty)
