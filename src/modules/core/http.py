"""Request helpers shared by the API views."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict

from rest_framework import exceptions
from rest_framework.request import Request


def request_payload(request: Request) -> Dict[str, Any]:
    """Return the request body as a plain dict, ready for a pydantic DTO.

    Form-encoded bodies arrive as a ``QueryDict``; JSON bodies are already
    plain dicts.

    Raises:
        rest_framework.exceptions.ValidationError: the JSON body is not an
            object (a list, a string, a number...).
    """
    data = request.data
    if hasattr(data, "dict"):
        return data.dict()
    if not isinstance(data, Mapping):
        raise exceptions.ValidationError(
            {"non_field_errors": [f"Expected a JSON object, got {type(data).__name__}."]},
            code="invalid",
        )
    return dict(data)
