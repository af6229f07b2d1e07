"""Invoice service layer (Use Cases).

Business rules enforced:
- At most one live (non-cancelled) invoice per order.
- Paid or cancelled invoices cannot be edited.
- Paid invoices cannot be cancelled.
- Paying an invoice marks its order's payment status as PAID.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.customers.exceptions import CustomerNotFound
from modules.invoices.constants import LOCKED_STATES, InvoiceStatus
from modules.invoices.exceptions import (
    CannotDeleteInvoice,
    InvalidInvoiceStatus,
    InvoiceAlreadyExists,
    InvoiceNotFound,
)
from modules.invoices.models import Invoice
from modules.orders.constants import PaymentMethod, PaymentStatus

if TYPE_CHECKING:
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.invoices.dtos import (
        CreateInvoiceDTO,
        InvoiceReportQueryDTO,
        PayInvoiceDTO,
        UpdateInvoiceDTO,
    )
    from modules.invoices.repositories.interfaces import IInvoiceRepository
    from modules.orders.services import OrderService

logger = structlog.get_logger(__name__)


class InvoiceService:
    """Application service for Invoice use-cases."""

    def __init__(
        self,
        invoice_repository: IInvoiceRepository,
        customer_repository: ICustomerRepository,
        order_service: OrderService,
    ) -> None:
        self._repo = invoice_repository
        self._customer_repo = customer_repository
        self._order_service = order_service

    def _locked(self, invoice_id: str) -> Invoice:
        invoice = self._repo.get_for_update(str(invoice_id))
        if not invoice:
            raise InvoiceNotFound(f"Invoice {invoice_id} not found.")
        return invoice

    def _mark_order_paid(self, invoice: Invoice) -> None:
        if invoice.order_id is None or invoice.order.is_deleted:
            return
        self._order_service.update_payment_status(
            str(invoice.order_id), PaymentStatus.PAID, invoice.payment_method
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_invoice(self, dto: CreateInvoiceDTO) -> Invoice:
        """Issue an invoice from an order, or a manual one for a customer.

        Raises:
            OrderNotFound: ``order_id`` does not match a live order.
            InvoiceAlreadyExists: the order already has a live invoice.
            CustomerNotFound: manual invoice for an unknown customer.
        """
        if dto.is_manual:
            return self._create_manual(dto)

        order = self._order_service.get_order(str(dto.order_id))
        if self._repo.get_for_order(str(order.id)):
            raise InvoiceAlreadyExists("Invoice already exists for this order.")

        invoice = Invoice(
            order=order,
            customer_id=order.customer_id,
            total_amount=order.total_amount,
            payment_method=dto.payment_method or order.payment_method,
            payment_notes=dto.payment_notes,
            due_date=dto.due_date,
            notes=dto.notes,
        )
        invoice = self._repo.save(invoice)
        logger.info("invoice.created", invoice_id=str(invoice.id), order_id=str(order.id))
        return invoice

    def _create_manual(self, dto: CreateInvoiceDTO) -> Invoice:
        if not self._customer_repo.exists(str(dto.customer_id)):
            raise CustomerNotFound(f"Customer {dto.customer_id} not found.")

        invoice = Invoice(
            customer_id=dto.customer_id,
            total_amount=dto.total_amount,
            payment_method=dto.payment_method or PaymentMethod.CASH,
            payment_notes=dto.payment_notes,
            due_date=dto.due_date,
            notes=dto.notes,
        )
        invoice = self._repo.save(invoice)
        logger.info("invoice.created", invoice_id=str(invoice.id), manual=True)
        return invoice

    @transaction.atomic
    def update_invoice(self, invoice_id: str, dto: UpdateInvoiceDTO) -> Invoice:
        """Raises ``InvalidInvoiceStatus`` for paid or cancelled invoices."""
        invoice = self._locked(invoice_id)
        if invoice.status in LOCKED_STATES:
            raise InvalidInvoiceStatus(
                f"Cannot update an invoice in status {invoice.status}."
            )

        for field in ("total_amount", "payment_method", "payment_notes", "due_date", "notes"):
            value = getattr(dto, field)
            if value is not None:
                setattr(invoice, field, value)
        self._repo.save(invoice)
        return self.get_invoice(invoice_id)

    @transaction.atomic
    def update_status(self, invoice_id: str, new_status: str) -> Invoice:
        invoice = self._locked(invoice_id)
        old_status = invoice.status
        invoice.status = new_status
        self._repo.save(invoice)
        if new_status == InvoiceStatus.PAID and old_status != InvoiceStatus.PAID:
            self._mark_order_paid(invoice)
        logger.info(
            "invoice.status_updated",
            invoice_id=str(invoice_id),
            old_status=old_status,
            new_status=new_status,
        )
        return self.get_invoice(invoice_id)

    @transaction.atomic
    def mark_as_paid(self, invoice_id: str, dto: PayInvoiceDTO) -> Invoice:
        """Record payment and mark the linked order as paid.

        Raises:
            InvalidInvoiceStatus: invoice already paid or cancelled.
        """
        invoice = self._locked(invoice_id)
        if invoice.status == InvoiceStatus.PAID:
            raise InvalidInvoiceStatus("Invoice is already paid.")
        if invoice.status == InvoiceStatus.CANCELLED:
            raise InvalidInvoiceStatus("Cannot pay a cancelled invoice.")

        invoice.status = InvoiceStatus.PAID
        if dto.payment_method:
            invoice.payment_method = dto.payment_method
        if dto.payment_notes:
            invoice.payment_notes = dto.payment_notes
        self._repo.save(invoice)
        self._mark_order_paid(invoice)

        logger.info("invoice.paid", invoice_id=str(invoice_id))
        return self.get_invoice(invoice_id)

    @transaction.atomic
    def delete_invoice(self, invoice_id: str) -> None:
        """Cancel an invoice.

        Raises:
            CannotDeleteInvoice: the invoice was paid.
        """
        invoice = self._locked(invoice_id)
        if invoice.status == InvoiceStatus.PAID:
            raise CannotDeleteInvoice("Cannot delete paid invoices.")
        self._repo.delete(str(invoice.id))
        logger.info("invoice.cancelled", invoice_id=str(invoice_id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_invoice(self, invoice_id: str) -> Invoice:
        invoice = self._repo.get_by_id(str(invoice_id))
        if not invoice:
            raise InvoiceNotFound(f"Invoice {invoice_id} not found.")
        return invoice

    def list_invoices(self, filters: Optional[Dict[str, Any]] = None) -> List[Invoice]:
        return self._repo.list(filters)

    def get_invoice_by_number(self, invoice_number: str) -> Invoice:
        """Raises ``InvoiceNotFound`` if no invoice carries *invoice_number*."""
        invoice = self._repo.get_by_number(invoice_number.strip())
        if not invoice:
            raise InvoiceNotFound(f"Invoice {invoice_number} not found.")
        return invoice

    def recent_invoices(self, limit: Optional[int] = None) -> List[Invoice]:
        return self._repo.recent(limit or settings.RECENT_ORDERS_LIMIT)

    def pending_invoices(self) -> List[Invoice]:
        """Issued or overdue invoices still waiting for payment."""
        return self._repo.unpaid()

    def overdue_invoices(self) -> List[Invoice]:
        """Unpaid invoices whose due date has passed, oldest due date first."""
        return self._repo.unpaid(due_before=timezone.localdate())

    def invoice_statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        return self._repo.statistics(start_date, end_date)

    def invoice_report(self, query: InvoiceReportQueryDTO) -> Dict[str, Any]:
        """Invoices grouped by issue month and status, newest month first.

        ``summary`` totals every row of the report.
        """
        filters: Dict[str, Any] = {}
        if query.start_date:
            filters["issue_date__gte"] = query.start_date
        if query.end_date:
            filters["issue_date__lte"] = query.end_date
        if query.status:
            filters["status"] = query.status
        if query.payment_method:
            filters["payment_method"] = query.payment_method

        rows = self._repo.monthly_report(filters)
        return {
            "rows": rows,
            "summary": {
                "total_invoices": sum(row["count"] for row in rows),
                "total_amount": sum((row["total_amount"] for row in rows), Decimal("0.00")),
            },
        }
