"""Pre-order domain exceptions."""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import (
    CannotDeleteError,
    DomainError,
    InvalidStateError,
    NotFoundError,
)


class PreOrderNotFound(NotFoundError):
    """The requested pre-order does not exist."""


class InvalidPreOrderStatus(InvalidStateError):
    """Operation not allowed from the pre-order's current status."""


class AlreadyConverted(DomainError):
    """The pre-order is already linked to an order and is read-only."""

    code = "already_converted"
    status_code = status.HTTP_409_CONFLICT


class CannotDeletePreOrder(CannotDeleteError):
    """Delivered pre-orders cannot be cancelled."""
