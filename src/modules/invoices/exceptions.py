"""Invoice domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import (
    CannotDeleteError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
)


class InvoiceNotFound(NotFoundError):
    """The requested invoice does not exist."""


class InvoiceAlreadyExists(ConflictError):
    """An invoice was already issued for the order."""


class InvalidInvoiceStatus(InvalidStateError):
    """Paid or cancelled invoices are frozen."""


class CannotDeleteInvoice(CannotDeleteError):
    """Paid invoices cannot be cancelled."""
