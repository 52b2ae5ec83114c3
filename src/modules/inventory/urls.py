"""Inventory URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.inventory.views import DepotViewSet, InventoryViewSet

router = DefaultRouter(trailing_slash=True)
router.register("depots", DepotViewSet, basename="depot")
router.register("inventory", InventoryViewSet, basename="inventory")

urlpatterns = router.urls
