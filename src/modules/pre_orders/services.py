"""Pre-order service layer (Use Cases).

A pre-order records what a customer wants before the store has it.  Once
the goods arrive (status AVAILABLE) the pre-order is converted into a
regular order through ``OrderService.create_order``, so conversion uses
exactly the same availability checks and atomic stock reservation as any
other sale.

Business rules enforced:
- Customer must exist and be active.
- Status transitions validated against ``VALID_TRANSITIONS``.
- A converted pre-order is read-only; it can be converted only once.
- Conversion, stock reservation and the pre-order update commit together.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.customers.exceptions import CustomerNotFound
from modules.orders.dtos import CreateOrderDTO
from modules.pre_orders.constants import TERMINAL_STATES, PreOrderStatus
from modules.pre_orders.exceptions import (
    AlreadyConverted,
    CannotDeletePreOrder,
    InvalidPreOrderStatus,
    PreOrderNotFound,
)

if TYPE_CHECKING:
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.models import Order
    from modules.orders.services import OrderService
    from modules.pre_orders.dtos import (
        ConvertPreOrderDTO,
        CreatePreOrderDTO,
        UpdatePreOrderDTO,
    )
    from modules.pre_orders.models import PreOrder
    from modules.pre_orders.repositories.interfaces import IPreOrderRepository

logger = structlog.get_logger(__name__)


class PreOrderService:
    """Application service for PreOrder use-cases.

    Composes an ``OrderService`` for the conversion step; orders never
    call back into pre-orders.
    """

    def __init__(
        self,
        pre_order_repository: IPreOrderRepository,
        customer_repository: ICustomerRepository,
        order_service: OrderService,
    ) -> None:
        self._repo = pre_order_repository
        self._customer_repo = customer_repository
        self._order_service = order_service

    def _locked(self, pre_order_id: str) -> PreOrder:
        pre_order = self._repo.get_for_update(str(pre_order_id))
        if not pre_order:
            raise PreOrderNotFound(f"Pre-order {pre_order_id} not found.")
        return pre_order

    @staticmethod
    def _ensure_not_converted(pre_order: PreOrder) -> None:
        if pre_order.is_converted:
            raise AlreadyConverted(
                f"Pre-order {pre_order.pre_order_code} has already been converted."
            )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_pre_order(self, dto: CreatePreOrderDTO) -> PreOrder:
        """Create a WAITING pre-order.

        Raises:
            CustomerNotFound: customer does not exist or is inactive.
        """
        if not self._customer_repo.exists(str(dto.customer_id)):
            raise CustomerNotFound(f"Customer {dto.customer_id} not found.")

        pre_order = self._repo.create(
            {
                "customer_id": dto.customer_id,
                "items": [item.model_dump() for item in dto.items],
                "deposit": dto.deposit,
                "expected_date": dto.expected_date,
                "notes": dto.notes,
            }
        )
        logger.info(
            "pre_order.created",
            pre_order_id=str(pre_order.id),
            total_estimated_amount=str(pre_order.total_estimated_amount),
        )
        return self._repo.get_by_id(str(pre_order.id)) or pre_order

    @transaction.atomic
    def update_pre_order(self, pre_order_id: str, dto: UpdatePreOrderDTO) -> PreOrder:
        """Update an open pre-order.

        Raises:
            PreOrderNotFound: pre-order does not exist.
            AlreadyConverted: the pre-order has been turned into an order.
            InvalidPreOrderStatus: pre-order is delivered or cancelled.
        """
        pre_order = self._locked(pre_order_id)
        self._ensure_not_converted(pre_order)
        if pre_order.status in TERMINAL_STATES:
            raise InvalidPreOrderStatus(
                f"Cannot update a pre-order in status {pre_order.status}."
            )

        if dto.items is not None:
            pre_order = self._repo.replace_items(
                pre_order, [item.model_dump() for item in dto.items]
            )
        for field in ("deposit", "expected_date", "notes"):
            value = getattr(dto, field)
            if value is not None:
                setattr(pre_order, field, value)

        self._repo.save(pre_order)
        logger.info("pre_order.updated", pre_order_id=str(pre_order_id))
        return self._repo.get_by_id(str(pre_order_id))

    @transaction.atomic
    def update_status(self, pre_order_id: str, new_status: str) -> PreOrder:
        """Move a pre-order along its state machine.

        Raises:
            PreOrderNotFound: pre-order does not exist.
            AlreadyConverted: the pre-order has been turned into an order.
            InvalidPreOrderStatus: transition is not allowed.
        """
        pre_order = self._locked(pre_order_id)
        self._ensure_not_converted(pre_order)

        log = logger.bind(
            pre_order_id=str(pre_order_id),
            current_status=pre_order.status,
            new_status=new_status,
        )
        if pre_order.status == new_status:
            log.info("pre_order.status_unchanged")
            return self._repo.get_by_id(str(pre_order_id))

        if not pre_order.can_transition_to(new_status):
            log.warning("pre_order.invalid_transition")
            raise InvalidPreOrderStatus(
                f"Cannot transition from {pre_order.status} to {new_status}."
            )

        pre_order.status = new_status
        self._repo.save(pre_order)
        log.info("pre_order.status_updated")
        return self._repo.get_by_id(str(pre_order_id))

    @transaction.atomic
    def cancel_pre_order(self, pre_order_id: str) -> None:
        """Cancel a pre-order (the DELETE operation).

        Raises:
            PreOrderNotFound: pre-order does not exist.
            CannotDeletePreOrder: pre-order was delivered.
            AlreadyConverted: the pre-order has been turned into an order.
        """
        pre_order = self._locked(pre_order_id)
        if pre_order.status == PreOrderStatus.DELIVERED:
            raise CannotDeletePreOrder("Cannot delete delivered pre-orders.")
        self._ensure_not_converted(pre_order)

        if pre_order.status != PreOrderStatus.CANCELLED:
            self._repo.delete(str(pre_order.id))
        logger.info("pre_order.cancelled", pre_order_id=str(pre_order_id))

    @transaction.atomic
    def convert_to_order(
        self, pre_order_id: str, dto: ConvertPreOrderDTO
    ) -> Tuple[PreOrder, Order]:
        """Turn an AVAILABLE pre-order into a regular order.

        The pre-order row stays locked until commit, so two concurrent
        conversions serialize and the second one sees ``AlreadyConverted``.
        ``AlreadyConverted`` is checked before the status because a
        converted pre-order is DELIVERED.

        Raises:
            PreOrderNotFound: pre-order does not exist.
            AlreadyConverted: the pre-order was converted before.
            InvalidPreOrderStatus: pre-order is not AVAILABLE.
            CustomerNotFound / ProductNotFound / InactiveProduct /
            InsufficientStock: raised by order creation; nothing is saved.
        """
        pre_order = self._locked(pre_order_id)
        self._ensure_not_converted(pre_order)

        log = logger.bind(pre_order_id=str(pre_order_id))

        if pre_order.status != PreOrderStatus.AVAILABLE:
            log.warning("pre_order.not_available", status=pre_order.status)
            raise InvalidPreOrderStatus(
                f"Pre-order must be {PreOrderStatus.AVAILABLE} to convert, "
                f"not {pre_order.status}."
            )

        order = self._order_service.create_order(
            CreateOrderDTO(
                customer_id=pre_order.customer_id,
                items=dto.items,
                payment_method=dto.payment_method,
                payment_status=dto.payment_status,
                notes=dto.notes or f"Converted from pre-order {pre_order.pre_order_code}",
            )
        )

        pre_order.status = PreOrderStatus.DELIVERED
        pre_order.converted_to_order = order
        self._repo.save(pre_order)

        log.info("pre_order.converted", order_id=str(order.id))
        return self._repo.get_by_id(str(pre_order_id)), order

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_pre_order(self, pre_order_id: str) -> PreOrder:
        """Raises ``PreOrderNotFound`` if the pre-order does not exist."""
        pre_order = self._repo.get_by_id(str(pre_order_id))
        if not pre_order:
            raise PreOrderNotFound(f"Pre-order {pre_order_id} not found.")
        return pre_order

    def list_pre_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[PreOrder]:
        return self._repo.list(filters)

    def overdue_pre_orders(self) -> List[PreOrder]:
        """WAITING pre-orders whose expected date has passed."""
        return self._repo.overdue(timezone.localdate())

    def search_pre_orders(self, query: str) -> List[PreOrder]:
        """Pre-orders matching *query* on code, notes, customer name or phone."""
        query = (query or "").strip()
        if not query:
            return []
        return self._repo.search(query)

    def recent_pre_orders(self, limit: Optional[int] = None) -> List[PreOrder]:
        return self._repo.recent(limit or settings.RECENT_ORDERS_LIMIT)

    def pre_order_statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        return self._repo.statistics(start_date, end_date)
