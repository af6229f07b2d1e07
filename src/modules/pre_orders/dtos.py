"""Pre-order DTOs for the Service Layer (Pydantic v2, immutable).

- ``PreOrderItemDTO``: a free-form requested item.
- ``CreatePreOrderDTO`` / ``UpdatePreOrderDTO``: pre-order input.
- ``UpdatePreOrderStatusDTO``: status change.
- ``ConvertPreOrderDTO``: catalogue items and payment details used to
  turn an AVAILABLE pre-order into an order.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.orders.constants import PaymentMethod, PaymentStatus
from modules.orders.dtos import OrderItemDTO
from modules.pre_orders.constants import PreOrderStatus


class PreOrderItemDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    team_name: str = Field(min_length=1)
    size: str = Field(min_length=1)
    category: str = ""
    quantity: int = Field(ge=1)
    estimated_price: Decimal = Field(ge=0)
    notes: str = ""


def _items_not_empty(v):
    if v is not None and not v:
        raise ValueError("Pre-order must have at least one item.")
    return v


class CreatePreOrderDTO(BaseModel):
    """Immutable DTO for pre-order creation requests."""

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    items: List[PreOrderItemDTO]
    deposit: Decimal = Field(default=Decimal("0"), ge=0)
    expected_date: Optional[date] = None
    notes: str = ""

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v):
        return _items_not_empty(v)


class UpdatePreOrderDTO(BaseModel):
    """Only supplied fields are updated; ``items`` replaces every line."""

    model_config = ConfigDict(frozen=True)

    items: Optional[List[PreOrderItemDTO]] = None
    deposit: Optional[Decimal] = Field(default=None, ge=0)
    expected_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v):
        return _items_not_empty(v)


class UpdatePreOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: PreOrderStatus

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        return v.upper() if isinstance(v, str) else v


class ConvertPreOrderDTO(BaseModel):
    """Conversion input: every item must reference a catalogue product."""

    model_config = ConfigDict(frozen=True)

    items: List[OrderItemDTO]
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    notes: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v):
        if not v:
            raise ValueError("Conversion must have at least one item.")
        return v
