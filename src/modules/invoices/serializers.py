"""Invoice DRF serializers for API output."""

from __future__ import annotations

from rest_framework import serializers

from modules.invoices.models import Invoice


class InvoiceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    order_number = serializers.CharField(
        source="order.order_number", read_only=True, default=None
    )

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "order_id",
            "order_number",
            "customer_id",
            "customer_name",
            "total_amount",
            "payment_method",
            "payment_notes",
            "issue_date",
            "due_date",
            "status",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class AmountBreakdownSerializer(serializers.Serializer):
    count = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class InvoiceStatisticsSerializer(serializers.Serializer):
    total_invoices = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_invoice_value = serializers.DecimalField(max_digits=14, decimal_places=2)
    paid_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    outstanding_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    invoices_by_status = serializers.DictField(child=AmountBreakdownSerializer())
    invoices_by_payment_method = serializers.DictField(child=AmountBreakdownSerializer())


class ReportRowSerializer(serializers.Serializer):
    month = serializers.DateField()
    status = serializers.CharField()
    count = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class ReportSummarySerializer(serializers.Serializer):
    total_invoices = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)


class InvoiceReportSerializer(serializers.Serializer):
    rows = ReportRowSerializer(many=True)
    summary = ReportSummarySerializer()
