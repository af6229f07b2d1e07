"""Product domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer translates them through ``modules.core.exceptions.exception_handler``.
"""

from __future__ import annotations

from modules.core.exceptions import ConflictError, DomainValidationError, NotFoundError


class ProductAlreadyExists(ConflictError):
    """A product with the same team, category, size and type already exists."""


class ProductNotFound(NotFoundError):
    """The requested product does not exist."""


class ImageNotFound(NotFoundError):
    """The image is not attached to the product."""


class NoImagesProvided(DomainValidationError):
    """An image upload request carried no files."""
