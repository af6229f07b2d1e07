"""Unit tests for ProductService with mocked repository, ledger and images."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from modules.products.dtos import CreateProductDTO, StockAdjustmentDTO, UpdateProductDTO
from modules.products.exceptions import (
    ImageNotFound,
    NoImagesProvided,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.products.images import UploadedImage
from modules.products.models import Product
from modules.products.services import ProductService

pytestmark = pytest.mark.unit


@pytest.fixture()
def mock_repo():
    repo = MagicMock()
    repo.get_by_attributes.return_value = None
    repo.save.side_effect = lambda p: p
    return repo


@pytest.fixture()
def mock_ledger():
    return MagicMock()


@pytest.fixture()
def mock_images():
    images = MagicMock()
    images.upload_many.return_value = [
        UploadedImage(url="/media/products/new.jpg", public_id="products/new.jpg")
    ]
    return images


@pytest.fixture()
def service(mock_repo, mock_ledger, mock_images):
    return ProductService(repository=mock_repo, ledger=mock_ledger, images=mock_images)


def _product(**overrides) -> Product:
    defaults = {
        "name": "Chelsea Home",
        "team_name": "Chelsea",
        "size": "M",
        "price": Decimal("90.00"),
        "quantity": 4,
        "images": [{"url": "/media/products/old.jpg", "public_id": "products/old.jpg"}],
    }
    defaults.update(overrides)
    return Product(**defaults)


class TestCreateProduct:
    def test_success_with_images(self, service, mock_images):
        dto = CreateProductDTO(name="Chelsea Home", team_name="Chelsea", size="m", price="90")
        product = service.create_product(dto, image_files=["file"])

        assert product.size == "M"
        assert product.images == [
            {"url": "/media/products/new.jpg", "public_id": "products/new.jpg"}
        ]
        mock_images.upload_many.assert_called_once_with(["file"])

    def test_duplicate(self, service, mock_repo):
        mock_repo.get_by_attributes.return_value = _product()
        dto = CreateProductDTO(name="Chelsea Home", team_name="Chelsea", size="M", price="90")
        with pytest.raises(ProductAlreadyExists):
            service.create_product(dto)
        mock_repo.save.assert_not_called()


class TestUpdateProduct:
    def test_quantity_untouched(self, service, mock_repo):
        product = _product()
        mock_repo.get_by_id.return_value = product
        updated = service.update_product(str(product.id), UpdateProductDTO(price="95"))
        assert updated.price == Decimal("95")
        assert updated.quantity == 4

    def test_duplicate_excluding_self(self, service, mock_repo):
        product = _product()
        mock_repo.get_by_id.return_value = product
        mock_repo.get_by_attributes.return_value = _product(size="L")
        with pytest.raises(ProductAlreadyExists):
            service.update_product(str(product.id), UpdateProductDTO(size="L"))
        assert mock_repo.get_by_attributes.call_args.kwargs["exclude_id"] == str(product.id)

    def test_new_images_replace_old(
        self, service, mock_repo, django_capture_on_commit_callbacks
    ):
        product = _product()
        mock_repo.get_by_id.return_value = product

        with patch("modules.products.services.cleanup_images") as cleanup:
            with django_capture_on_commit_callbacks(execute=True):
                updated = service.update_product(
                    str(product.id), UpdateProductDTO(), image_files=["file"]
                )

        assert [i["public_id"] for i in updated.images] == ["products/new.jpg"]
        cleanup.delay.assert_called_once_with(["products/old.jpg"])

    def test_not_found(self, service, mock_repo):
        mock_repo.get_by_id.return_value = None
        with pytest.raises(ProductNotFound):
            service.update_product("missing", UpdateProductDTO(name="X"))


class TestImages:
    def test_add_images_appends(self, service, mock_repo):
        mock_repo.get_by_id.return_value = _product()
        product = service.add_images("id", ["file"])
        assert [i["public_id"] for i in product.images] == [
            "products/old.jpg",
            "products/new.jpg",
        ]

    def test_add_images_requires_files(self, service):
        with pytest.raises(NoImagesProvided):
            service.add_images("id", [])

    def test_remove_image_by_url(
        self, service, mock_repo, django_capture_on_commit_callbacks
    ):
        mock_repo.get_by_id.return_value = _product()
        with patch("modules.products.services.cleanup_images") as cleanup:
            with django_capture_on_commit_callbacks(execute=True):
                product = service.remove_image("id", "/media/products/old.jpg")
        assert product.images == []
        cleanup.delay.assert_called_once_with(["products/old.jpg"])

    def test_remove_unknown_image(self, service, mock_repo):
        mock_repo.get_by_id.return_value = _product()
        with pytest.raises(ImageNotFound):
            service.remove_image("id", "products/other.jpg")


class TestAdjustStock:
    def test_add_releases(self, service, mock_repo, mock_ledger):
        product = _product()
        mock_repo.get_by_id.return_value = product
        service.adjust_stock(str(product.id), StockAdjustmentDTO(quantity=3, operation="add"))
        mock_ledger.release.assert_called_once_with(product.id, 3)
        mock_ledger.reserve.assert_not_called()

    def test_subtract_reserves(self, service, mock_repo, mock_ledger):
        product = _product()
        mock_repo.get_by_id.return_value = product
        service.adjust_stock(
            str(product.id), StockAdjustmentDTO(quantity=2, operation="subtract")
        )
        mock_ledger.reserve.assert_called_once_with(product.id, 2)


class TestDeleteAndLowStock:
    def test_delete_deactivates_and_cleans_images(
        self, service, mock_repo, django_capture_on_commit_callbacks
    ):
        product = _product()
        mock_repo.get_by_id.return_value = product
        with patch("modules.products.services.cleanup_images") as cleanup:
            with django_capture_on_commit_callbacks(execute=True):
                service.delete_product(str(product.id))
        assert product.is_active is False
        assert product.images == []
        cleanup.delay.assert_called_once_with(["products/old.jpg"])

    def test_low_stock_default_threshold(self, service, mock_repo, settings):
        settings.LOW_STOCK_THRESHOLD = 3
        service.low_stock()
        mock_repo.low_stock.assert_called_once_with(3)

    def test_low_stock_explicit_threshold(self, service, mock_repo):
        service.low_stock(0)
        mock_repo.low_stock.assert_called_once_with(0)
