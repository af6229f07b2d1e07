"""Pre-order routes, mounted under ``/api/v1/``."""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.pre_orders.views import PreOrderViewSet

router = SimpleRouter(trailing_slash=True)
router.register("pre-orders", PreOrderViewSet, basename="pre-order")

urlpatterns = router.urls
