"""Unit tests for InventoryLedger.

Repository calls are mocked; the last class runs the ledger against the
Django repository to check the conditional decrement on a real row.
"""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock, call

import pytest

from modules.inventory.exceptions import (
    InactiveProduct,
    InsufficientStock,
    InvalidQuantity,
    StockContention,
)
from modules.inventory.ledger import InventoryLedger, aggregate_lines
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository

pytestmark = pytest.mark.unit


@pytest.fixture()
def mock_repo():
    return MagicMock()


@pytest.fixture()
def ledger(mock_repo):
    return InventoryLedger(mock_repo)


def _product(quantity=5, is_active=True):
    return SimpleNamespace(
        id=uuid.uuid4(), name="Arsenal Home", quantity=quantity, is_active=is_active
    )


class TestAggregateLines:
    def test_sums_per_product(self):
        a, b = "a-product", "b-product"
        assert aggregate_lines([(b, 1), (a, 1), (a, 2)]) == [(a, 3), (b, 1)]

    def test_rejects_zero_quantity(self):
        with pytest.raises(InvalidQuantity):
            aggregate_lines([("a", 0)])


class TestCheckAvailability:
    def test_returns_product(self, ledger, mock_repo):
        product = _product(quantity=5)
        mock_repo.get_by_id.return_value = product
        assert ledger.check_availability(product.id, 5) is product

    def test_missing_product(self, ledger, mock_repo):
        mock_repo.get_by_id.return_value = None
        with pytest.raises(ProductNotFound):
            ledger.check_availability(uuid.uuid4(), 1)

    def test_inactive_product(self, ledger, mock_repo):
        mock_repo.get_by_id.return_value = _product(is_active=False)
        with pytest.raises(InactiveProduct):
            ledger.check_availability(uuid.uuid4(), 1)

    def test_insufficient_stock_reports_numbers(self, ledger, mock_repo):
        product = _product(quantity=2)
        mock_repo.get_by_id.return_value = product
        with pytest.raises(InsufficientStock) as exc_info:
            ledger.check_availability(product.id, 3)
        assert exc_info.value.available == 2
        assert exc_info.value.required == 3
        assert "Available: 2, Required: 3" in str(exc_info.value)

    @pytest.mark.parametrize("qty", [0, -1, 1.5, True])
    def test_invalid_quantity(self, ledger, qty):
        with pytest.raises(InvalidQuantity):
            ledger.check_availability(uuid.uuid4(), qty)


class TestReserve:
    def test_success(self, ledger, mock_repo):
        mock_repo.decrement_stock.return_value = True
        product_id = uuid.uuid4()
        ledger.reserve(product_id, 3)
        mock_repo.decrement_stock.assert_called_once_with(product_id, 3)

    def test_failed_decrement_raises_insufficient(self, ledger, mock_repo):
        product = _product(quantity=2)
        mock_repo.decrement_stock.return_value = False
        mock_repo.get_by_id.return_value = product
        with pytest.raises(InsufficientStock):
            ledger.reserve(product.id, 3)

    def test_failed_decrement_on_inactive_product(self, ledger, mock_repo):
        mock_repo.decrement_stock.return_value = False
        mock_repo.get_by_id.return_value = _product(is_active=False)
        with pytest.raises(InactiveProduct):
            ledger.reserve(uuid.uuid4(), 1)

    def test_retries_when_stock_returned_in_between(self, ledger, mock_repo):
        product = _product(quantity=5)
        mock_repo.decrement_stock.side_effect = [False, True]
        mock_repo.get_by_id.return_value = product

        ledger.reserve(product.id, 3)

        assert mock_repo.decrement_stock.call_count == 2

    def test_contention_is_a_conflict_not_a_shortage(self, ledger, mock_repo):
        product = _product(quantity=5)
        mock_repo.decrement_stock.return_value = False
        mock_repo.get_by_id.return_value = product

        with pytest.raises(StockContention):
            ledger.reserve(product.id, 3)
        assert mock_repo.decrement_stock.call_count == 2

    def test_reserve_items_aggregates_and_sorts(self, ledger, mock_repo):
        mock_repo.decrement_stock.return_value = True
        ledger.reserve_items([("b", 1), ("a", 2), ("a", 1)])
        assert mock_repo.decrement_stock.call_args_list == [call("a", 3), call("b", 1)]


class TestRelease:
    def test_success(self, ledger, mock_repo):
        mock_repo.increment_stock.return_value = True
        ledger.release("a", 2)
        mock_repo.increment_stock.assert_called_once_with("a", 2)

    def test_none_product_is_skipped(self, ledger, mock_repo):
        ledger.release(None, 2)
        mock_repo.increment_stock.assert_not_called()

    def test_missing_row_is_skipped(self, ledger, mock_repo):
        mock_repo.increment_stock.return_value = False
        ledger.release("gone", 2)

    def test_release_items_skips_detached_lines(self, ledger, mock_repo):
        mock_repo.increment_stock.return_value = True
        ledger.release_items([(None, 4), ("a", 1), ("a", 1)])
        mock_repo.increment_stock.assert_called_once_with("a", 2)


class TestLedgerAgainstDatabase:
    def test_reserve_then_fail_keeps_balance(self, product):
        ledger = InventoryLedger(ProductDjangoRepository())

        ledger.reserve(product.id, 3)
        product.refresh_from_db()
        assert product.quantity == 2

        with pytest.raises(InsufficientStock) as exc_info:
            ledger.reserve(product.id, 3)
        assert exc_info.value.available == 2
        product.refresh_from_db()
        assert product.quantity == 2

    def test_release_restores_stock(self, product):
        ledger = InventoryLedger(ProductDjangoRepository())
        ledger.reserve(product.id, 5)
        ledger.release(product.id, 5)
        product.refresh_from_db()
        assert product.quantity == 5

    def test_inactive_product_cannot_be_reserved(self, make_product):
        inactive = make_product(is_active=False, quantity=10)
        ledger = InventoryLedger(ProductDjangoRepository())
        with pytest.raises(InactiveProduct):
            ledger.reserve(inactive.id, 1)
        inactive.refresh_from_db()
        assert inactive.quantity == 10
