"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer and the Service layer.
DTOs are immutable (``frozen=True``).

- ``OrderItemDTO``: a requested line (product, quantity, customization).
- ``CreateOrderDTO``: input for order creation (nested items).
- ``UpdateOrderDTO``: item replacement and plain field updates.
- ``UpdateStatusDTO`` / ``UpdatePaymentDTO``: status and payment changes.
- ``StatisticsQueryDTO``: optional date window for reporting.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.orders.constants import (
    AgeGroup,
    HomeOrAway,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)


class OrderItemDTO(BaseModel):
    """Immutable DTO for a single requested order line.

    ``unit_price`` and the product snapshot are resolved by the Service
    Layer from the catalogue, never taken from the client.  The same
    product may appear on several lines (e.g. different prints).
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int
    home_or_away: HomeOrAway = HomeOrAway.HOME
    age_group: AgeGroup = AgeGroup.ADULT
    print_name: str = Field(default="", max_length=100)
    print_number: str = Field(default="", max_length=10)

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


def _items_not_empty(v: List[OrderItemDTO]) -> List[OrderItemDTO]:
    if not v:
        raise ValueError("Order must have at least one item.")
    return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - Each item quantity must be positive.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    items: List[OrderItemDTO]
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    notes: str = ""
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(cls, v: List[OrderItemDTO]) -> List[OrderItemDTO]:
        return _items_not_empty(v)

    @field_validator("notes", mode="before")
    @classmethod
    def none_notes_is_blank(cls, v):
        return v or ""


class UpdateOrderDTO(BaseModel):
    """Immutable DTO for order update requests.

    Every field is optional; only the supplied ones change.
    ``items``, when present, replaces every line of the order.
    """

    model_config = ConfigDict(frozen=True)

    items: Optional[List[OrderItemDTO]] = None
    notes: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: Optional[List[OrderItemDTO]]
    ) -> Optional[List[OrderItemDTO]]:
        return v if v is None else _items_not_empty(v)


class UpdateStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    notes: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        return v.upper() if isinstance(v, str) else v


class UpdatePaymentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None


class StatisticsQueryDTO(BaseModel):
    """Optional ``[start_date, end_date]`` window; both ends inclusive."""

    model_config = ConfigDict(frozen=True)

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def window_is_ordered(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date.")
        return self
