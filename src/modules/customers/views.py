"""HTTP endpoints for store customers and their purchase history."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.http import request_payload
from modules.customers.dtos import CreateCustomerDTO, UpdateCustomerDTO
from modules.customers.filters import CustomerFilter
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.serializers import CustomerSerializer
from modules.customers.services import CustomerService


class CustomerViewSet(ListModelMixin, GenericViewSet):
    """Lists read straight from the active-customer queryset; every write
    goes through ``CustomerService``."""

    filterset_class = CustomerFilter
    search_fields = ["name", "phone", "email"]
    ordering_fields = ["created_at", "name"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Customer.objects.filter(is_active=True)
    serializer_class = CustomerSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CustomerService(repository=CustomerDjangoRepository())

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        customer = self._service.get_customer(pk)
        return Response(CustomerSerializer(customer).data)

    def create(self, request: Request) -> Response:
        dto = CreateCustomerDTO(**request_payload(request))
        customer = self._service.create_customer(dto)
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)

    def update(self, request: Request, pk: str | None = None) -> Response:
        # PUT and PATCH share partial-update semantics.
        dto = UpdateCustomerDTO(**request_payload(request))
        customer = self._service.update_customer(pk, dto)
        return Response(CustomerSerializer(customer).data)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        return self.update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/customers/{pk}/ (deactivates the customer)."""
        self._service.delete_customer(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(summary="Purchase history of a customer")
    @action(detail=True, methods=["get"], url_path="orders")
    def orders(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/customers/{pk}/orders/"""
        from modules.orders.repositories.django_repository import OrderDjangoRepository
        from modules.orders.serializers import OrderSerializer

        customer = self._service.get_customer(pk)
        orders = OrderDjangoRepository().list({"customer_id": customer.id})
        page = self.paginate_queryset(orders)
        if page is not None:
            return self.get_paginated_response(OrderSerializer(page, many=True).data)
        return Response(OrderSerializer(orders, many=True).data)
