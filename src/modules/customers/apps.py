from django.apps import AppConfig


class CustomersConfig(AppConfig):
    name = "modules.customers"
    label = "customers"
    verbose_name = "Customers"
