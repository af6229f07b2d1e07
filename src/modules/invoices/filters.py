import django_filters

from modules.invoices.constants import InvoiceStatus
from modules.invoices.models import Invoice
from modules.orders.constants import PaymentMethod


class InvoiceFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=InvoiceStatus.choices)
    payment_method = django_filters.ChoiceFilter(choices=PaymentMethod.choices)
    customer = django_filters.UUIDFilter(field_name="customer_id")
    customer_name = django_filters.CharFilter(
        field_name="customer__name", lookup_expr="icontains"
    )
    code = django_filters.CharFilter(field_name="invoice_number", lookup_expr="icontains")
    start_date = django_filters.DateFilter(field_name="issue_date", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="issue_date", lookup_expr="date__lte")

    class Meta:
        model = Invoice
        fields = [
            "status",
            "payment_method",
            "customer",
            "customer_name",
            "code",
            "start_date",
            "end_date",
        ]
