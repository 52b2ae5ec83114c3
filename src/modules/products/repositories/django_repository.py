"""Django ORM implementation of the Product repository.

Methods return ``None`` instead of raising for missing rows; the Service
Layer decides how to translate a missing product into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import structlog

from django.core.exceptions import ValidationError
from django.db import transaction

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve an alive product by primary key.

        Returns ``None`` for non-existent, soft-deleted or invalid IDs.
        """
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        queryset = Product.objects.alive()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return Product.objects.alive().filter(sku=sku.strip().upper()).first()

    def get_many(self, ids: Iterable[str]) -> List[Product]:
        return list(Product.objects.alive().filter(id__in=list(ids)))
