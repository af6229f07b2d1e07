"""Invoice API views."""

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
from modules.invoices.dtos import (
    CreateInvoiceDTO,
    InvoiceReportQueryDTO,
    PayInvoiceDTO,
    UpdateInvoiceDTO,
    UpdateInvoiceStatusDTO,
)
from modules.invoices.filters import InvoiceFilter
from modules.invoices.models import Invoice
from modules.invoices.repositories.django_repository import InvoiceDjangoRepository
from modules.invoices.serializers import (
    InvoiceReportSerializer,
    InvoiceSerializer,
    InvoiceStatisticsSerializer,
)
from modules.invoices.services import InvoiceService
from modules.orders.dtos import StatisticsQueryDTO
from modules.orders.views import build_order_service


class InvoiceViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for invoices issued from orders or manually."""

    queryset = Invoice.objects.select_related("customer", "order")
    serializer_class = InvoiceSerializer
    filterset_class = InvoiceFilter
    search_fields = ["invoice_number", "customer__name", "customer__phone", "notes"]
    ordering_fields = ["issue_date", "total_amount", "due_date"]
    ordering = ["-issue_date", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = InvoiceService(
            invoice_repository=InvoiceDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            order_service=build_order_service(),
        )

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/invoices/{pk}/"""
        return Response(InvoiceSerializer(self._service.get_invoice(pk)).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/invoices/ with ``order_id`` or ``customer_id`` + ``total_amount``"""
        invoice = self._service.create_invoice(CreateInvoiceDTO(**request_payload(request)))
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT/PATCH /api/v1/invoices/{pk}/"""
        invoice = self._service.update_invoice(pk, UpdateInvoiceDTO(**request_payload(request)))
        return Response(InvoiceSerializer(invoice).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/invoices/{pk}/ (cancels the invoice)"""
        self._service.delete_invoice(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["patch"], url_path="status")
    def change_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/invoices/{pk}/status/"""
        dto = UpdateInvoiceStatusDTO(**request_payload(request))
        invoice = self._service.update_status(pk, dto.status)
        return Response(InvoiceSerializer(invoice).data)

    @action(detail=True, methods=["post"])
    def pay(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/invoices/{pk}/pay/"""
        invoice = self._service.mark_as_paid(pk, PayInvoiceDTO(**request_payload(request)))
        return Response(InvoiceSerializer(invoice).data)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @action(detail=False, methods=["get"], url_path=r"code/(?P<code>[^/]+)")
    def by_code(self, request: Request, code: str | None = None) -> Response:
        """GET /api/v1/invoices/code/{invoice_number}/"""
        return Response(InvoiceSerializer(self._service.get_invoice_by_number(code)).data)

    @extend_schema(parameters=[OpenApiParameter("limit", int, required=False)])
    @action(detail=False, methods=["get"])
    def recent(self, request: Request) -> Response:
        """GET /api/v1/invoices/recent/?limit=N"""
        limit = request.query_params.get("limit")
        invoices = self._service.recent_invoices(int(limit) if limit and limit.isdigit() else None)
        return Response(InvoiceSerializer(invoices, many=True).data)

    @action(detail=False, methods=["get"])
    def pending(self, request: Request) -> Response:
        """GET /api/v1/invoices/pending/"""
        return Response(InvoiceSerializer(self._service.pending_invoices(), many=True).data)

    @action(detail=False, methods=["get"])
    def overdue(self, request: Request) -> Response:
        """GET /api/v1/invoices/overdue/"""
        return Response(InvoiceSerializer(self._service.overdue_invoices(), many=True).data)

    @extend_schema(
        parameters=[
            OpenApiParameter("start_date", str, required=False),
            OpenApiParameter("end_date", str, required=False),
        ],
        responses=InvoiceStatisticsSerializer,
    )
    @action(detail=False, methods=["get"])
    def statistics(self, request: Request) -> Response:
        """GET /api/v1/invoices/statistics/?start_date=...&end_date=..."""
        window = StatisticsQueryDTO(**request.query_params.dict())
        stats = self._service.invoice_statistics(window.start_date, window.end_date)
        return Response(InvoiceStatisticsSerializer(stats).data)

    @extend_schema(
        parameters=[
            OpenApiParameter("start_date", str, required=False),
            OpenApiParameter("end_date", str, required=False),
            OpenApiParameter("status", str, required=False),
            OpenApiParameter("payment_method", str, required=False),
        ],
        responses=InvoiceReportSerializer,
    )
    @action(detail=False, methods=["get"])
    def report(self, request: Request) -> Response:
        """GET /api/v1/invoices/report/?start_date=...&status=...&payment_method=..."""
        query = InvoiceReportQueryDTO(**request.query_params.dict())
        return Response(InvoiceReportSerializer(self._service.invoice_report(query)).data)
