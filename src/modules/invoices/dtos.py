"""Invoice DTOs for the Service Layer (Pydantic v2, immutable)."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.invoices.constants import InvoiceStatus
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import StatisticsQueryDTO


class CreateInvoiceDTO(BaseModel):
    """Invoice creation input.

    Either ``order_id`` (invoice from an order) or ``customer_id`` plus
    ``total_amount`` (manual invoice) must be supplied.
    """

    model_config = ConfigDict(frozen=True)

    order_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    total_amount: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    payment_notes: str = ""
    due_date: Optional[date] = None
    notes: str = ""

    @model_validator(mode="after")
    def order_or_manual(self):
        if self.order_id is None and (
            self.customer_id is None or self.total_amount is None
        ):
            raise ValueError(
                "Provide order_id, or customer_id and total_amount for a manual invoice."
            )
        return self

    @property
    def is_manual(self) -> bool:
        return self.order_id is None


class UpdateInvoiceDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_amount: Optional[Decimal] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None
    payment_notes: Optional[str] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class UpdateInvoiceStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: InvoiceStatus

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        return v.upper() if isinstance(v, str) else v


class PayInvoiceDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_method: Optional[PaymentMethod] = None
    payment_notes: Optional[str] = None


class InvoiceReportQueryDTO(StatisticsQueryDTO):
    """Report window plus optional status and payment method filters."""

    status: Optional[InvoiceStatus] = None
    payment_method: Optional[PaymentMethod] = None

    @field_validator("status", mode="before")
    @classmethod
    def upper_status(cls, v):
        return v.upper() if isinstance(v, str) else v
