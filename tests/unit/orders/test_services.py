"""Unit tests for OrderService with mocked repositories and ledger.

The inventory effects against a real database are covered in
``tests/integration/test_inventory_consistency.py``.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from django.db import IntegrityError

from modules.customers.exceptions import CustomerNotFound
from modules.inventory.exceptions import InsufficientStock
from modules.orders.constants import OrderStatus, PaymentStatus, can_transition
from modules.orders.dtos import CreateOrderDTO, OrderItemDTO, UpdateOrderDTO
from modules.orders.exceptions import (
    CannotDeleteOrder,
    IdempotencyKeyReused,
    InvalidOrderStatus,
    OrderNotFound,
)
from modules.orders.models import Order
from modules.orders.services import OrderService

pytestmark = pytest.mark.unit


@pytest.fixture()
def order_repo():
    return MagicMock()


@pytest.fixture()
def customer_repo():
    repo = MagicMock()
    repo.exists.return_value = True
    return repo


@pytest.fixture()
def ledger():
    return MagicMock()


@pytest.fixture()
def service(order_repo, customer_repo, ledger):
    return OrderService(
        order_repository=order_repo,
        customer_repository=customer_repo,
        product_repository=MagicMock(),
        ledger=ledger,
    )


def _catalogue_product(price="100.00"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        price=Decimal(price),
        team_name="Arsenal",
        category="Club",
        size="M",
        season="24/25",
        primary_image="",
    )


def _order(status=OrderStatus.CREATED, lines=None):
    order = MagicMock(spec=Order)
    order.id = uuid.uuid4()
    order.status = status
    order.is_deleted = False
    order.stock_lines.return_value = lines or []
    order.can_transition_to.side_effect = lambda new: can_transition(order.status, new)
    return order


class TestCreateOrder:
    def test_success_reserves_and_records_history(self, service, order_repo, ledger):
        product = _catalogue_product()
        ledger.check_availability.return_value = product
        order_repo.get_by_idempotency_key.return_value = None
        created = _order()
        order_repo.create.return_value = created
        order_repo.get_by_id.return_value = created

        dto = CreateOrderDTO(
            customer_id=uuid.uuid4(),
            items=[OrderItemDTO(product_id=product.id, quantity=3)],
        )
        result = service.create_order(dto)

        assert result is created
        data = order_repo.create.call_args.args[0]
        assert data["items"][0]["unit_price"] == Decimal("100.00")
        assert data["items"][0]["team_name"] == "Arsenal"
        ledger.reserve_items.assert_called_once_with([(product.id, 3)])
        order_repo.add_history.assert_called_once()
        assert order_repo.add_history.call_args.kwargs["status"] == OrderStatus.CREATED

    def test_availability_checked_on_summed_lines(self, service, order_repo, ledger):
        product = _catalogue_product()
        ledger.check_availability.return_value = product
        order_repo.get_by_idempotency_key.return_value = None
        order_repo.create.return_value = _order()

        dto = CreateOrderDTO(
            customer_id=uuid.uuid4(),
            items=[
                OrderItemDTO(product_id=product.id, quantity=2, print_name="SAKA"),
                OrderItemDTO(product_id=product.id, quantity=1, print_name="RICE"),
            ],
        )
        service.create_order(dto)

        ledger.check_availability.assert_called_once_with(str(product.id), 3)

    def test_idempotency_hit_returns_existing(self, service, order_repo, ledger):
        existing = _order()
        order_repo.get_by_idempotency_key.return_value = existing
        dto = CreateOrderDTO(
            customer_id=uuid.uuid4(),
            items=[OrderItemDTO(product_id=uuid.uuid4(), quantity=1)],
            idempotency_key="key-1",
        )
        assert service.create_order(dto) is existing
        order_repo.create.assert_not_called()
        ledger.reserve_items.assert_not_called()

    def test_key_of_deleted_order_conflicts(self, service, order_repo, ledger):
        deleted = _order(status=OrderStatus.CANCELLED)
        deleted.is_deleted = True
        order_repo.get_by_idempotency_key.return_value = deleted
        dto = CreateOrderDTO(
            customer_id=uuid.uuid4(),
            items=[OrderItemDTO(product_id=uuid.uuid4(), quantity=1)],
            idempotency_key="key-1",
        )
        with pytest.raises(IdempotencyKeyReused):
            service.create_order(dto)
        order_repo.create.assert_not_called()
        ledger.reserve_items.assert_not_called()

    def test_concurrent_insert_with_same_key_replays(self, service, order_repo, ledger):
        ledger.check_availability.return_value = _catalogue_product()
        winner = _order()
        order_repo.get_by_idempotency_key.side_effect = [None, winner]
        order_repo.create.side_effect = IntegrityError("UNIQUE constraint failed")
        dto = CreateOrderDTO(
            customer_id=uuid.uuid4(),
            items=[OrderItemDTO(product_id=uuid.uuid4(), quantity=1)],
            idempotency_key="key-1",
        )

        assert service.create_order(dto) is winner
        ledger.reserve_items.assert_not_called()

    def test_integrity_error_without_key_propagates(self, service, order_repo, ledger):
        ledger.check_availability.return_value = _catalogue_product()
        order_repo.create.side_effect = IntegrityError("boom")
        dto = CreateOrderDTO(
            customer_id=uuid.uuid4(),
            items=[OrderItemDTO(product_id=uuid.uuid4(), quantity=1)],
        )
        with pytest.raises(IntegrityError):
            service.create_order(dto)

    def test_unknown_customer(self, service, customer_repo, order_repo):
        customer_repo.exists.return_value = False
        dto = CreateOrderDTO(
            customer_id=uuid.uuid4(),
            items=[OrderItemDTO(product_id=uuid.uuid4(), quantity=1)],
        )
        with pytest.raises(CustomerNotFound):
            service.create_order(dto)
        order_repo.create.assert_not_called()

    def test_insufficient_stock_creates_nothing(self, service, order_repo, ledger):
        product_id = uuid.uuid4()
        ledger.check_availability.side_effect = InsufficientStock(product_id, 2, 3)
        dto = CreateOrderDTO(
            customer_id=uuid.uuid4(),
            items=[OrderItemDTO(product_id=product_id, quantity=3)],
        )
        with pytest.raises(InsufficientStock):
            service.create_order(dto)
        order_repo.create.assert_not_called()
        ledger.reserve_items.assert_not_called()


class TestUpdateStatus:
    def test_not_found(self, service, order_repo):
        order_repo.get_for_update.return_value = None
        with pytest.raises(OrderNotFound):
            service.update_status("id", OrderStatus.PAID)

    def test_same_status_is_noop(self, service, order_repo, ledger):
        order_repo.get_for_update.return_value = _order(OrderStatus.CANCELLED)
        service.update_status("id", OrderStatus.CANCELLED)
        ledger.release_items.assert_not_called()
        order_repo.save.assert_not_called()
        order_repo.add_history.assert_not_called()

    def test_invalid_transition(self, service, order_repo):
        order_repo.get_for_update.return_value = _order(OrderStatus.CREATED)
        with pytest.raises(InvalidOrderStatus):
            service.update_status("id", OrderStatus.DELIVERED)
        order_repo.save.assert_not_called()

    def test_cancel_releases_stock(self, service, order_repo, ledger):
        lines = [(uuid.uuid4(), 3)]
        order = _order(OrderStatus.PAID, lines)
        order_repo.get_for_update.return_value = order

        service.update_status("id", OrderStatus.CANCELLED, notes="customer changed mind")

        ledger.release_items.assert_called_once_with(lines)
        assert order.status == OrderStatus.CANCELLED
        history = order_repo.add_history.call_args.kwargs
        assert history["old_status"] == OrderStatus.PAID
        assert history["status"] == OrderStatus.CANCELLED

    def test_pay_has_no_stock_effect(self, service, order_repo, ledger):
        order_repo.get_for_update.return_value = _order(OrderStatus.CREATED)
        service.update_status("id", OrderStatus.PAID)
        ledger.release_items.assert_not_called()
        ledger.reserve_items.assert_not_called()


class TestUpdateOrder:
    def test_items_frozen_on_terminal_order(self, service, order_repo, ledger):
        order_repo.get_for_update.return_value = _order(OrderStatus.DELIVERED)
        dto = UpdateOrderDTO(items=[OrderItemDTO(product_id=uuid.uuid4(), quantity=1)])
        with pytest.raises(InvalidOrderStatus):
            service.update_order("id", dto)
        ledger.release_items.assert_not_called()

    def test_items_released_before_new_ones_reserved(self, service, order_repo, ledger):
        old_lines = [(uuid.uuid4(), 2)]
        order = _order(OrderStatus.CREATED, old_lines)
        order_repo.get_for_update.return_value = order
        order_repo.replace_items.return_value = order
        product = _catalogue_product()
        ledger.check_availability.return_value = product

        calls = []
        ledger.release_items.side_effect = lambda lines: calls.append("release")
        ledger.check_availability.side_effect = lambda *a: calls.append("check") or product
        ledger.reserve_items.side_effect = lambda lines: calls.append("reserve")

        service.update_order(
            "id", UpdateOrderDTO(items=[OrderItemDTO(product_id=product.id, quantity=4)])
        )

        assert calls == ["release", "check", "reserve"]
        ledger.release_items.assert_called_once_with(old_lines)

    def test_field_update_without_items(self, service, order_repo, ledger):
        order = _order(OrderStatus.DELIVERED)
        order_repo.get_for_update.return_value = order
        service.update_order("id", UpdateOrderDTO(payment_status=PaymentStatus.PAID))
        assert order.payment_status == PaymentStatus.PAID
        ledger.release_items.assert_not_called()


class TestDeleteOrder:
    def test_delivered_cannot_be_deleted(self, service, order_repo):
        order_repo.get_for_update.return_value = _order(OrderStatus.DELIVERED)
        with pytest.raises(CannotDeleteOrder):
            service.delete_order("id")

    def test_delete_open_order_releases_and_cancels(self, service, order_repo, ledger):
        lines = [(uuid.uuid4(), 3)]
        order = _order(OrderStatus.CREATED, lines)
        order_repo.get_for_update.return_value = order

        service.delete_order("id")

        ledger.release_items.assert_called_once_with(lines)
        assert order.status == OrderStatus.CANCELLED
        order.mark_deleted.assert_called_once()
        order_repo.add_history.assert_called_once()

    def test_delete_cancelled_order_does_not_release_twice(self, service, order_repo, ledger):
        order = _order(OrderStatus.CANCELLED, [(uuid.uuid4(), 3)])
        order_repo.get_for_update.return_value = order

        service.delete_order("id")

        ledger.release_items.assert_not_called()
        order.mark_deleted.assert_called_once()
        order_repo.add_history.assert_not_called()


class TestQueries:
    def test_blank_search_returns_empty(self, service, order_repo):
        assert service.search_orders("   ") == []
        order_repo.search.assert_not_called()

    def test_recent_uses_default_limit(self, service, order_repo, settings):
        settings.RECENT_ORDERS_LIMIT = 7
        service.recent_orders()
        order_repo.recent.assert_called_once_with(7)

    def test_get_missing(self, service, order_repo):
        order_repo.get_by_id.return_value = None
        with pytest.raises(OrderNotFound):
            service.get_order("id")
