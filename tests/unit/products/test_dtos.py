from decimal import Decimal

import pytest
from pydantic import ValidationError

from modules.products.dtos import CreateProductDTO, StockAdjustmentDTO, UpdateProductDTO

pytestmark = pytest.mark.unit


class TestCreateProductDTO:
    def test_valid(self):
        dto = CreateProductDTO(
            name="Barcelona Away", team_name="Barcelona", size=" l ", price="120.50"
        )
        assert dto.size == "L"
        assert dto.price == Decimal("120.50")
        assert dto.quantity == 0

    def test_negative_price(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="A", team_name="B", size="M", price="-1")

    def test_negative_quantity(self):
        with pytest.raises(ValidationError):
            CreateProductDTO(name="A", team_name="B", size="M", price="1", quantity=-1)

    @pytest.mark.parametrize("field", ["name", "team_name", "size"])
    def test_required_text_not_blank(self, field):
        data = {"name": "A", "team_name": "B", "size": "M", "price": "1", field: "  "}
        with pytest.raises(ValidationError):
            CreateProductDTO(**data)


class TestUpdateProductDTO:
    def test_has_no_quantity(self):
        assert "quantity" not in UpdateProductDTO.model_fields

    def test_size_uppercased(self):
        assert UpdateProductDTO(size="xl").size == "XL"


class TestStockAdjustmentDTO:
    def test_valid(self):
        dto = StockAdjustmentDTO(quantity=3, operation="subtract")
        assert dto.operation == "subtract"

    def test_unknown_operation(self):
        with pytest.raises(ValidationError):
            StockAdjustmentDTO(quantity=3, operation="set")

    def test_zero_quantity(self):
        with pytest.raises(ValidationError):
            StockAdjustmentDTO(quantity=0, operation="add")
