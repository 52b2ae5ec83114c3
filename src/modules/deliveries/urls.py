"""Delivery URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.deliveries.views import DeliveryViewSet, DriverViewSet

router = DefaultRouter(trailing_slash=True)
router.register("deliveries", DeliveryViewSet, basename="delivery")
router.register("drivers", DriverViewSet, basename="driver")

urlpatterns = router.urls
