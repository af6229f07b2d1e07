"""Product API views.

Exposes the ``ProductService`` via HTTP using DRF ViewSets.
Domain errors propagate to ``modules.core.exceptions.exception_handler``.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.http import request_payload
from modules.products.dtos import CreateProductDTO, StockAdjustmentDTO, UpdateProductDTO
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductSerializer
from modules.products.services import ProductService


def _image_files(request: Request) -> list:
    return request.FILES.getlist("images")


class ProductViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for Product CRUD, stock and image operations.

    Uses ``ProductService`` with ``ProductDjangoRepository`` (DIP).
    Lists show active products unless ``?active=false`` is passed.
    """

    filterset_class = ProductFilter
    search_fields = ["name", "team_name", "description"]
    ordering_fields = ["name", "price", "quantity", "created_at"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    queryset = Product.objects.all()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def get_queryset(self):
        queryset = super().get_queryset()
        if "active" not in self.request.query_params:
            queryset = queryset.filter(is_active=True)
        return queryset

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        product = self._service.get_product(pk)
        return Response(ProductSerializer(product).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/ (JSON or multipart with ``images`` files)"""
        dto = CreateProductDTO(**request_payload(request))
        product = self._service.create_product(dto, _image_files(request))
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/products/{pk}/"""
        dto = UpdateProductDTO(**request_payload(request))
        product = self._service.update_product(pk, dto, _image_files(request))
        return Response(ProductSerializer(product).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/ (deactivates the product)"""
        self._service.delete_product(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["patch"], url_path="stock")
    def stock(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/stock/

        Accepts ``{"quantity": N, "operation": "add" | "subtract"}``.
        """
        dto = StockAdjustmentDTO(**request_payload(request))
        product = self._service.adjust_stock(pk, dto)
        return Response(ProductSerializer(product).data)

    @action(detail=True, methods=["post", "delete"], url_path="images")
    def images(self, request: Request, pk: str | None = None) -> Response:
        """POST uploads ``images`` files; DELETE removes ``public_id`` (or ``url``)."""
        if request.method == "POST":
            product = self._service.add_images(pk, _image_files(request))
            return Response(ProductSerializer(product).data)

        image_ref = request.data.get("public_id") or request.data.get("url")
        if not image_ref:
            raise ValidationError({"public_id": ["This field is required."]})
        product = self._service.remove_image(pk, image_ref)
        return Response(ProductSerializer(product).data)

    @extend_schema(
        parameters=[OpenApiParameter("threshold", int, required=False)],
    )
    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request: Request) -> Response:
        """GET /api/v1/products/low-stock/?threshold=N"""
        threshold = request.query_params.get("threshold")
        if threshold is not None:
            try:
                threshold = int(threshold)
            except ValueError:
                raise ValidationError({"threshold": ["A valid integer is required."]})
        products = self._service.low_stock(threshold)
        return Response(ProductSerializer(products, many=True).data)
