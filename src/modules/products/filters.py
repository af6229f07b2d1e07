import django_filters

from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    team_name = django_filters.CharFilter(field_name="team_name", lookup_expr="icontains")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")
    size = django_filters.CharFilter(field_name="size", lookup_expr="iexact")
    season = django_filters.CharFilter(field_name="season", lookup_expr="iexact")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    active = django_filters.BooleanFilter(field_name="is_active")

    class Meta:
        model = Product
        fields = [
            "name",
            "team_name",
            "category",
            "size",
            "season",
            "min_price",
            "max_price",
            "active",
        ]
