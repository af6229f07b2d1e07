"""Order service layer (Use Cases).

Orchestrates the order lifecycle: creation, item updates, status and
payment transitions, and soft deletion.  Every stock effect goes through
the ``InventoryLedger``; every write operation is atomic, so a failure
half-way through rolls back the order rows and every stock change.

Business rules enforced:
- Customer must exist and be active.
- Products must exist, be active and have enough stock.
- Status transitions validated against ``VALID_TRANSITIONS``.
- Cancelling (or deleting) an order returns its stock exactly once.
- Items of delivered or cancelled orders are frozen.
- History recorded on every status change.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction

from modules.customers.exceptions import CustomerNotFound
from modules.inventory.ledger import InventoryLedger
from modules.orders.constants import TERMINAL_STATES, OrderStatus
from modules.orders.exceptions import (
    CannotDeleteOrder,
    IdempotencyKeyReused,
    InvalidOrderStatus,
    OrderNotFound,
)

if TYPE_CHECKING:
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import CreateOrderDTO, OrderItemDTO, UpdateOrderDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).  The ledger
    defaults to one built over the product repository.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        product_repository: IProductRepository,
        ledger: Optional[InventoryLedger] = None,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._product_repo = product_repository
        self._ledger = ledger or InventoryLedger(product_repository)

    # ------------------------------------------------------------------
    # Item handling
    # ------------------------------------------------------------------

    def _build_items(self, items: Sequence[OrderItemDTO]) -> List[Dict[str, Any]]:
        """Validate availability and snapshot every requested line.

        Availability is checked against the summed quantity per product,
        so two lines of the same product cannot jointly oversell.
        """
        required: Dict[str, int] = defaultdict(int)
        for item in items:
            required[str(item.product_id)] += item.quantity

        products = {
            product_id: self._ledger.check_availability(product_id, qty)
            for product_id, qty in sorted(required.items())
        }

        snapshots = []
        for item in items:
            product = products[str(item.product_id)]
            snapshots.append(
                {
                    "product_id": product.id,
                    "quantity": item.quantity,
                    "unit_price": product.price,
                    "team_name": product.team_name,
                    "category": product.category,
                    "size": product.size,
                    "season": product.season,
                    "image": product.primary_image,
                    "home_or_away": item.home_or_away,
                    "age_group": item.age_group,
                    "print_name": item.print_name,
                    "print_number": item.print_number,
                }
            )
        return snapshots

    def _replay(self, idempotency_key: str) -> Optional[Order]:
        """The order already created under *idempotency_key*, if any.

        Raises:
            IdempotencyKeyReused: that order has been deleted.
        """
        existing = self._order_repo.get_by_idempotency_key(idempotency_key)
        if existing is None:
            return None
        if existing.is_deleted:
            raise IdempotencyKeyReused(
                f"Idempotency key {idempotency_key!r} belongs to a deleted order."
            )
        logger.info("order.idempotency_hit", order_id=str(existing.id))
        return existing

    @staticmethod
    def _stock_lines(snapshots: List[Dict[str, Any]]) -> List[tuple]:
        return [(item["product_id"], item["quantity"]) for item in snapshots]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO) -> Order:
        """Create a new order and reserve its stock.

        Steps:
        1. Return the existing order on an idempotency-key hit.
        2. Validate the customer is active.
        3. Check availability and snapshot every item.
        4. Persist order + items with the computed total.
        5. Reserve stock through the ledger.
        6. Record the initial status history.

        Raises:
            CustomerNotFound: customer does not exist or is inactive.
            ProductNotFound: a product does not exist.
            InactiveProduct: a product is inactive.
            InsufficientStock: not enough stock.
            IdempotencyKeyReused: the key belongs to a deleted order.
        """
        log = logger.bind(customer_id=str(dto.customer_id))
        log.info("order.creation_started")

        if dto.idempotency_key:
            existing = self._replay(dto.idempotency_key)
            if existing:
                return existing

        if not self._customer_repo.exists(str(dto.customer_id)):
            raise CustomerNotFound(f"Customer {dto.customer_id} not found.")

        snapshots = self._build_items(dto.items)
        try:
            order = self._order_repo.create(
                {
                    "customer_id": dto.customer_id,
                    "items": snapshots,
                    "notes": dto.notes,
                    "payment_method": dto.payment_method,
                    "payment_status": dto.payment_status,
                    "idempotency_key": dto.idempotency_key,
                }
            )
        except IntegrityError:
            # A concurrent request with the same key committed first.
            existing = dto.idempotency_key and self._replay(dto.idempotency_key)
            if not existing:
                raise
            return existing
        self._ledger.reserve_items(self._stock_lines(snapshots))

        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CREATED,
            notes="Order created",
        )

        log.info(
            "order.created",
            order_id=str(order.id),
            total_amount=str(order.total_amount),
        )
        return self._order_repo.get_by_id(str(order.id)) or order

    @transaction.atomic
    def update_order(self, order_id: str, dto: UpdateOrderDTO) -> Order:
        """Update an order; a new ``items`` list replaces the old one.

        Old items are released before the new ones are checked and
        reserved, so an order can be re-issued with the same stock.

        Raises:
            OrderNotFound: order does not exist or was deleted.
            InvalidOrderStatus: items changed on a delivered/cancelled order.
            ProductNotFound / InactiveProduct / InsufficientStock.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id))

        if dto.items is not None:
            if order.status in TERMINAL_STATES:
                log.warning("order.items_frozen", status=order.status)
                raise InvalidOrderStatus(
                    f"Cannot update items of an order in status {order.status}."
                )
            self._ledger.release_items(order.stock_lines())
            snapshots = self._build_items(dto.items)
            self._ledger.reserve_items(self._stock_lines(snapshots))
            order = self._order_repo.replace_items(order, snapshots)
            log.info("order.items_replaced", item_count=len(snapshots))

        for field in ("notes", "payment_method", "payment_status"):
            value = getattr(dto, field)
            if value is not None:
                setattr(order, field, value)

        self._order_repo.save(order)
        log.info("order.updated")
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def update_status(self, order_id: str, new_status: str, notes: str = "") -> Order:
        """Transition an order to a new status.

        Acquires a row-level lock on the order before validating the
        transition.  Requesting the current status is a no-op.  Moving to
        CANCELLED releases every item's stock before the status is saved.

        Raises:
            OrderNotFound: order does not exist or was deleted.
            InvalidOrderStatus: transition is not allowed.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=new_status,
        )

        if order.status == new_status:
            log.info("order.status_unchanged")
            return self._order_repo.get_by_id(str(order_id))

        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}."
            )

        if new_status == OrderStatus.CANCELLED:
            self._ledger.release_items(order.stock_lines())

        old_status = order.status
        order.status = new_status
        self._order_repo.save(order)
        self._order_repo.add_history(
            order_id=order.id,
            status=new_status,
            notes=notes,
            old_status=old_status,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def update_payment_status(
        self,
        order_id: str,
        payment_status: str,
        payment_method: Optional[str] = None,
    ) -> Order:
        """Change payment fields; no inventory effect.

        Raises:
            OrderNotFound: order does not exist or was deleted.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        order.payment_status = payment_status
        if payment_method:
            order.payment_method = payment_method
        self._order_repo.save(order)
        logger.info(
            "order.payment_updated",
            order_id=str(order_id),
            payment_status=payment_status,
        )
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def delete_order(self, order_id: str) -> None:
        """Soft-delete an order, returning its stock unless already cancelled.

        Raises:
            OrderNotFound: order does not exist or was already deleted.
            CannotDeleteOrder: the order was delivered.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id), current_status=order.status)

        if order.status == OrderStatus.DELIVERED:
            log.warning("order.delete_not_allowed")
            raise CannotDeleteOrder("Cannot delete delivered orders.")

        old_status = order.status
        if old_status != OrderStatus.CANCELLED:
            self._ledger.release_items(order.stock_lines())
            order.status = OrderStatus.CANCELLED

        order.mark_deleted()
        self._order_repo.save(order)

        if old_status != OrderStatus.CANCELLED:
            self._order_repo.add_history(
                order_id=order.id,
                status=OrderStatus.CANCELLED,
                notes="Order deleted",
                old_status=old_status,
            )
        log.info("order.deleted")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist or was deleted.
        """
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> List[Order]:
        """Return a list of live orders, optionally filtered."""
        return self._order_repo.list(filters)

    def search_orders(self, query: str) -> List[Order]:
        """Orders whose customer name or notes contain *query*."""
        query = (query or "").strip()
        if not query:
            return []
        return self._order_repo.search(query)

    def recent_orders(self, limit: Optional[int] = None) -> List[Order]:
        return self._order_repo.recent(limit or settings.RECENT_ORDERS_LIMIT)

    def order_statistics(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Totals, revenue, average and per-status breakdown in a window."""
        return self._order_repo.statistics(start_date, end_date)
