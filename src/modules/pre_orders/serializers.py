"""Pre-order DRF serializers for API output."""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.serializers import OrderSerializer
from modules.pre_orders.models import PreOrder, PreOrderItem


class PreOrderItemSerializer(serializers.ModelSerializer):
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = PreOrderItem
        fields = [
            "id",
            "name",
            "team_name",
            "category",
            "size",
            "quantity",
            "estimated_price",
            "subtotal",
            "notes",
        ]
        read_only_fields = fields


class PreOrderSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    items = PreOrderItemSerializer(many=True, read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = PreOrder
        fields = [
            "id",
            "pre_order_code",
            "customer_id",
            "customer_name",
            "status",
            "total_estimated_amount",
            "deposit",
            "expected_date",
            "is_overdue",
            "notes",
            "converted_to_order_id",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ConversionResultSerializer(serializers.Serializer):
    pre_order = PreOrderSerializer(read_only=True)
    order = OrderSerializer(read_only=True)


class PreOrderStatusBreakdownSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    estimated_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    deposits = serializers.DecimalField(max_digits=14, decimal_places=2)


class PreOrderStatisticsSerializer(serializers.Serializer):
    total_pre_orders = serializers.IntegerField()
    total_estimated_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_deposits = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_pre_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    pre_orders_by_status = serializers.DictField(child=PreOrderStatusBreakdownSerializer())
