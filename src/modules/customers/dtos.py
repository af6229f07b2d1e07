"""Customer DTOs for the Service Layer.

Pydantic v2 contracts between the API layer and the Service layer.
DTOs are immutable (``frozen=True``).

- ``CreateCustomerDTO``: input for customer creation.
- ``UpdateCustomerDTO``: input for partial updates.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

PHONE_PATTERN = re.compile(r"^\+?\d{8,15}$")


def _clean_phone(value: str) -> str:
    cleaned = re.sub(r"[\s.\-()]", "", value)
    if not PHONE_PATTERN.match(cleaned):
        raise ValueError("Phone number must contain 8 to 15 digits.")
    return cleaned


class CreateCustomerDTO(BaseModel):
    """Immutable DTO for customer creation requests.

    Validates:
    - ``name`` is not blank.
    - ``phone`` has 8-15 digits once separators are removed.
    - ``email`` (optional) is a well-formed address.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    phone: str
    email: EmailStr | None = None
    address: str = ""
    notes: str = ""

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Name must not be empty.")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def phone_must_be_valid(cls, v: str) -> str:
        return _clean_phone(v)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        return v or None


class UpdateCustomerDTO(BaseModel):
    """Immutable DTO for customer update requests.

    Every field is optional; only the supplied ones change.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    address: str | None = None
    notes: str | None = None
    is_active: bool | None = None

    @field_validator("phone")
    @classmethod
    def phone_must_be_valid(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _clean_phone(v)
