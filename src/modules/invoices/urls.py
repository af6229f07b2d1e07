"""Invoice routes, mounted under ``/api/v1/``."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.invoices.views import InvoiceViewSet

router = SimpleRouter(trailing_slash=True)
router.register("invoices", InvoiceViewSet, basename="invoice")

urlpatterns = router.urls
