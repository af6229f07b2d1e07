"""Pre-order API views.

Exposes the ``PreOrderService`` via HTTP.  Domain errors propagate to
``modules.core.exceptions.exception_handler``.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.http import request_payload
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.orders.dtos import StatisticsQueryDTO
from modules.orders.views import build_order_service
from modules.pre_orders.dtos import (
    ConvertPreOrderDTO,
    CreatePreOrderDTO,
    UpdatePreOrderDTO,
    UpdatePreOrderStatusDTO,
)
from modules.pre_orders.filters import PreOrderFilter
from modules.pre_orders.models import PreOrder
from modules.pre_orders.repositories.django_repository import PreOrderDjangoRepository
from modules.pre_orders.serializers import (
    ConversionResultSerializer,
    PreOrderSerializer,
    PreOrderStatisticsSerializer,
)
from modules.pre_orders.services import PreOrderService


class PreOrderViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for pre-order CRUD, status changes and conversion."""

    queryset = PreOrder.objects.select_related("customer").prefetch_related("items")
    serializer_class = PreOrderSerializer
    filterset_class = PreOrderFilter
    search_fields = ["pre_order_code", "customer__name", "notes"]
    ordering_fields = ["created_at", "expected_date", "total_estimated_amount"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = PreOrderService(
            pre_order_repository=PreOrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            order_service=build_order_service(),
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/pre-orders/{pk}/"""
        return Response(PreOrderSerializer(self._service.get_pre_order(pk)).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/pre-orders/"""
        pre_order = self._service.create_pre_order(
            CreatePreOrderDTO(**request_payload(request))
        )
        return Response(PreOrderSerializer(pre_order).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/pre-orders/{pk}/"""
        pre_order = self._service.update_pre_order(
            pk, UpdatePreOrderDTO(**request_payload(request))
        )
        return Response(PreOrderSerializer(pre_order).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/pre-orders/{pk}/ (cancels the pre-order)"""
        self._service.cancel_pre_order(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["patch"], url_path="status")
    def change_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/pre-orders/{pk}/status/"""
        dto = UpdatePreOrderStatusDTO(**request_payload(request))
        pre_order = self._service.update_status(pk, dto.status)
        return Response(PreOrderSerializer(pre_order).data)

    @extend_schema(responses=ConversionResultSerializer)
    @action(detail=True, methods=["post"])
    def convert(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/pre-orders/{pk}/convert/"""
        dto = ConvertPreOrderDTO(**request_payload(request))
        pre_order, order = self._service.convert_to_order(pk, dto)
        out = ConversionResultSerializer({"pre_order": pre_order, "order": order})
        return Response(out.data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def overdue(self, request: Request) -> Response:
        """GET /api/v1/pre-orders/overdue/"""
        pre_orders = self._service.overdue_pre_orders()
        return Response(PreOrderSerializer(pre_orders, many=True).data)

    @action(detail=False, methods=["get"])
    def search(self, request: Request) -> Response:
        """GET /api/v1/pre-orders/search/?q=..."""
        pre_orders = self._service.search_pre_orders(request.query_params.get("q", ""))
        return Response(PreOrderSerializer(pre_orders, many=True).data)

    @extend_schema(parameters=[OpenApiParameter("limit", int, required=False)])
    @action(detail=False, methods=["get"])
    def recent(self, request: Request) -> Response:
        """GET /api/v1/pre-orders/recent/?limit=N"""
        limit = request.query_params.get("limit")
        pre_orders = self._service.recent_pre_orders(
            int(limit) if limit and limit.isdigit() else None
        )
        return Response(PreOrderSerializer(pre_orders, many=True).data)

    @extend_schema(
        parameters=[
            OpenApiParameter("start_date", str, required=False),
            OpenApiParameter("end_date", str, required=False),
        ],
        responses=PreOrderStatisticsSerializer,
    )
    @action(detail=False, methods=["get"])
    def statistics(self, request: Request) -> Response:
        """GET /api/v1/pre-orders/statistics/?start_date=...&end_date=..."""
        window = StatisticsQueryDTO(**request.query_params.dict())
        stats = self._service.pre_order_statistics(window.start_date, window.end_date)
        return Response(PreOrderStatisticsSerializer(stats).data)
