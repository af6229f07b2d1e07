import django_filters

from modules.pre_orders.constants import PreOrderStatus
from modules.pre_orders.models import PreOrder


class PreOrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=PreOrderStatus.choices)
    customer = django_filters.UUIDFilter(field_name="customer_id")
    customer_name = django_filters.CharFilter(
        field_name="customer__name", lookup_expr="icontains"
    )
    code = django_filters.CharFilter(field_name="pre_order_code", lookup_expr="icontains")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = PreOrder
        fields = ["status", "customer", "customer_name", "code", "start_date", "end_date"]
