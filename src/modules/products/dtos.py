"""Product DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``CreateProductDTO``: input for product creation.
- ``UpdateProductDTO``: input for partial product updates.
- ``StockAdjustmentDTO``: input for manual restock / write-off.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _required_text(value: str, label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{label} must not be empty.")
    return value.strip()


class CreateProductDTO(BaseModel):
    """Immutable DTO for product creation requests.

    Validates:
    - ``name``, ``team_name`` and ``size`` are non-empty.
    - ``price`` is a non-negative Decimal.
    - ``quantity`` (initial stock) is non-negative.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    team_name: str
    size: str
    price: Decimal = Field(ge=0)
    quantity: int = Field(default=0, ge=0)
    category: str = ""
    type: str = ""
    color: str = ""
    season: str = ""
    description: str = ""

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        return _required_text(v, "Name")

    @field_validator("team_name")
    @classmethod
    def team_name_must_not_be_empty(cls, v: str) -> str:
        return _required_text(v, "Team name")

    @field_validator("size")
    @classmethod
    def size_must_not_be_empty(cls, v: str) -> str:
        return _required_text(v, "Size").upper()


class UpdateProductDTO(BaseModel):
    """Immutable DTO for product update requests.

    Every field is optional; only the supplied ones change.
    Stock is changed through ``StockAdjustmentDTO`` only.
    """

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    team_name: str | None = None
    size: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    category: str | None = None
    type: str | None = None
    color: str | None = None
    season: str | None = None
    description: str | None = None
    is_active: bool | None = None

    @field_validator("size")
    @classmethod
    def size_upper(cls, v: str | None) -> str | None:
        return v.strip().upper() if v is not None else v


class StockAdjustmentDTO(BaseModel):
    """``add`` returns units to stock, ``subtract`` takes them out."""

    model_config = ConfigDict(frozen=True)

    quantity: int = Field(gt=0)
    operation: Literal["add", "subtract"]
