"""Inventory ledger errors.

``ProductNotFound`` is shared with the products module and lives in
``modules.products.exceptions``.
"""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import (
    ConflictError,
    DomainError,
    DomainValidationError,
    InactiveError,
)


class InsufficientStock(DomainError):
    """Requested quantity exceeds the product's current stock."""

    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_id, available: int, required: int) -> None:
        self.product_id = product_id
        self.available = available
        self.required = required
        super().__init__(
            f"Not enough stock for product {product_id}. "
            f"Available: {available}, Required: {required}"
        )


class InactiveProduct(InactiveError):
    """The product exists but has been deactivated."""


class InvalidQuantity(DomainValidationError):
    """Quantity is not a positive integer."""


class StockContention(ConflictError):
    """Stock kept changing under a reservation; the caller may retry."""
