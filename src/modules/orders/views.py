"""Order API views.

Exposes ``OrderService`` over HTTP.  Views never catch domain errors;
``modules.core.exceptions.exception_handler`` renders them.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.http import request_payload
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.dtos import (
    CreateOrderDTO,
    StatisticsQueryDTO,
    UpdateOrderDTO,
    UpdatePaymentDTO,
    UpdateStatusDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    OrderListSerializer,
    OrderSerializer,
    OrderStatisticsSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository


def build_order_service() -> OrderService:
    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: writes go through the
    service/repository layer.
    """

    queryset = Order.objects.alive().select_related("customer")
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__name", "notes"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "search", "recent"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    # ------------------------------------------------------------------
    # Create / Update / Delete
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        """
        payload = request_payload(request)
        idempotency_key = request.headers.get("Idempotency-Key")
        if idempotency_key:
            payload["idempotency_key"] = idempotency_key
        order = self._service.create_order(CreateOrderDTO(**payload))
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/orders/{pk}/"""
        order = self._service.update_order(pk, UpdateOrderDTO(**request_payload(request)))
        return Response(OrderSerializer(order).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (soft delete, returns stock)"""
        self._service.delete_order(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["patch"], url_path="status")
    def change_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/"""
        dto = UpdateStatusDTO(**request_payload(request))
        order = self._service.update_status(pk, dto.status, dto.notes)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["patch"], url_path="payment")
    def payment(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/payment/"""
        dto = UpdatePaymentDTO(**request_payload(request))
        order = self._service.update_payment_status(
            pk, dto.payment_status, dto.payment_method
        )
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering, search and ordering come from ``filter_backends``.
        Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        return self.get_paginated_response(OrderListSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(pk)
        return Response(OrderSerializer(order).data)

    @extend_schema(parameters=[OpenApiParameter("q", str, required=True)])
    @action(detail=False, methods=["get"])
    def search(self, request: Request) -> Response:
        """GET /api/v1/orders/search/?q=..."""
        orders = self._service.search_orders(request.query_params.get("q", ""))
        return Response(OrderListSerializer(orders, many=True).data)

    @extend_schema(parameters=[OpenApiParameter("limit", int, required=False)])
    @action(detail=False, methods=["get"])
    def recent(self, request: Request) -> Response:
        """GET /api/v1/orders/recent/?limit=N"""
        limit = request.query_params.get("limit")
        orders = self._service.recent_orders(int(limit) if limit and limit.isdigit() else None)
        return Response(OrderListSerializer(orders, many=True).data)

    @extend_schema(
        parameters=[
            OpenApiParameter("start_date", str, required=False),
            OpenApiParameter("end_date", str, required=False),
        ],
        responses=OrderStatisticsSerializer,
    )
    @action(detail=False, methods=["get"])
    def statistics(self, request: Request) -> Response:
        """GET /api/v1/orders/statistics/?start_date=...&end_date=..."""
        window = StatisticsQueryDTO(**request.query_params.dict())
        stats = self._service.order_statistics(window.start_date, window.end_date)
        return Response(OrderStatisticsSerializer(stats).data)
