"""Customer domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer translates them through ``modules.core.exceptions.exception_handler``.
"""

from __future__ import annotations

from modules.core.exceptions import ConflictError, NotFoundError


class CustomerAlreadyExists(ConflictError):
    """An active customer with the same phone number already exists."""


class CustomerNotFound(NotFoundError):
    """The requested customer does not exist or has been deactivated."""
