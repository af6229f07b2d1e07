from django.apps import AppConfig


class PreOrdersConfig(AppConfig):
    name = "modules.pre_orders"
    label = "pre_orders"
    verbose_name = "Pre-orders"
