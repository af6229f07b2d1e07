"""Domain error kinds and their translation at the API boundary.

Every module raises subclasses of the kinds below.  Services never know
about HTTP: ``status_code`` is only read by ``exception_handler``, DRF's
``EXCEPTION_HANDLER``, which renders domain, pydantic and DRF failures
alike::

    {"type": "validation_error",
     "errors": [{"code": "invalid", "detail": "...", "attr": "items.0.quantity"}]}

``type`` is ``validation_error``, ``client_error`` or ``server_error``;
``attr`` is the dotted path of the offending field, or ``None``.
"""

from __future__ import annotations

from typing import Any, Iterator

import structlog
from django.core.exceptions import PermissionDenied
from django.http import Http404
from pydantic import ValidationError as PydanticValidationError
from rest_framework import exceptions, status
from rest_framework.views import exception_handler as drf_exception_handler

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for business-rule violations raised by the service layer."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST

    def to_api_exception(self) -> exceptions.APIException:
        api_exc = exceptions.APIException(detail=str(self), code=self.code)
        api_exc.status_code = self.status_code
        return api_exc


class NotFoundError(DomainError):
    """Entity missing or soft-deleted."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidStateError(DomainError):
    """Operation illegal for the entity's current status."""

    code = "invalid_state"
    status_code = status.HTTP_409_CONFLICT


class ConflictError(DomainError):
    """Uniqueness rule violated (duplicate phone, product, invoice...)."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InactiveError(DomainError):
    """Entity exists but is disabled."""

    code = "inactive"
    status_code = status.HTTP_400_BAD_REQUEST


class CannotDeleteError(DomainError):
    """Entity is in a terminal state that forbids deletion."""

    code = "cannot_delete"
    status_code = status.HTTP_409_CONFLICT


class DomainValidationError(DomainError):
    """Malformed input detected below the DTO layer (e.g. negative quantity)."""

    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


def exception_handler(exc: Exception, context: dict) -> Any:
    if isinstance(exc, DomainError):
        logger.info(
            "api.domain_error",
            error_code=exc.code,
            error_type=type(exc).__name__,
            detail=str(exc),
        )
        exc = exc.to_api_exception()
    elif isinstance(exc, PydanticValidationError):
        exc = exceptions.ValidationError(detail=_pydantic_errors(exc))
    elif isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied()

    response = drf_exception_handler(exc, context)
    if response is None:
        # Unexpected errors propagate to Django's 500 handling.
        return None

    response.data = {
        "type": _error_type(exc, response.status_code),
        "errors": list(_flatten(exc.detail)),
    }
    return response


def _error_type(exc: exceptions.APIException, status_code: int) -> str:
    if isinstance(exc, exceptions.ValidationError):
        return "validation_error"
    return "server_error" if status_code >= 500 else "client_error"


def _flatten(detail: Any, attr: str | None = None) -> Iterator[dict[str, Any]]:
    if isinstance(detail, dict):
        for key, value in detail.items():
            yield from _flatten(value, f"{attr}.{key}" if attr else str(key))
    elif isinstance(detail, list):
        for index, item in enumerate(detail):
            if isinstance(item, (dict, list)):
                yield from _flatten(item, f"{attr}.{index}" if attr else str(index))
            else:
                yield from _flatten(item, attr)
    else:
        yield {
            "code": getattr(detail, "code", "error"),
            "detail": str(detail),
            "attr": attr,
        }


def _pydantic_errors(exc: PydanticValidationError) -> dict[str, Any]:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        attr = ".".join(str(part) for part in error["loc"]) or "non_field_errors"
        message = str(error["msg"]).removeprefix("Value error, ")
        errors.setdefault(attr, []).append(message)
    return errors
