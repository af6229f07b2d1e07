"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer translates them through ``modules.core.exceptions.exception_handler``.
"""

from __future__ import annotations

from modules.core.exceptions import (
    CannotDeleteError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
)


class OrderNotFound(NotFoundError):
    """The requested order does not exist or has been soft-deleted."""


class InvalidOrderStatus(InvalidStateError):
    """Transition or item change not allowed from the current status."""


class CannotDeleteOrder(CannotDeleteError):
    """Delivered orders are kept."""


class IdempotencyKeyReused(ConflictError):
    """The key belongs to an order that has since been deleted."""
