"""Django ORM implementation of the Product repository.

Error handling follows the Null Object pattern: methods return ``None``
(or ``False``) instead of raising; the Service Layer and the inventory
ledger decide which domain error applies.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

EDITABLE_FIELDS = [
    field.name
    for field in Product._meta.concrete_fields
    if not field.primary_key and field.name not in ("quantity", "created_at")
]


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        """Retrieve a product by primary key.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return Product.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """List products with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True}
            {"team_name__icontains": "arsenal", "size": "M"}
        """
        queryset = Product.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product.

        Updates never write ``quantity``: stock only moves through
        ``decrement_stock`` and ``increment_stock``, so a reservation that
        lands between the caller's read and this save is kept.  The
        entity's ``quantity`` is refreshed from the row afterwards.
        """
        if entity._state.adding:
            entity.save()
        else:
            entity.save(update_fields=EDITABLE_FIELDS)
            entity.refresh_from_db(fields=["quantity"])
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Deactivate a product by ID.

        Returns ``False`` if no product exists with the given ID.
        """
        product = self.get_by_id(id)
        if not product:
            return False
        product.is_active = False
        product.save(update_fields=["is_active"])
        return True

    def get_by_attributes(
        self,
        team_name: str,
        category: str,
        size: str,
        type: str,
        exclude_id: Optional[str] = None,
    ) -> Optional[Product]:
        queryset = Product.objects.filter(
            team_name=team_name, category=category, size=size, type=type
        )
        if exclude_id:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.first()

    def decrement_stock(self, id: str, quantity: int) -> bool:
        try:
            updated = Product.objects.filter(
                id=id, is_active=True, quantity__gte=quantity
            ).update(quantity=F("quantity") - quantity, updated_at=timezone.now())
        except (ValueError, ValidationError):
            return False
        return updated == 1

    def increment_stock(self, id: str, quantity: int) -> bool:
        try:
            updated = Product.objects.filter(id=id).update(
                quantity=F("quantity") + quantity, updated_at=timezone.now()
            )
        except (ValueError, ValidationError):
            return False
        return updated == 1

    def low_stock(self, threshold: int) -> List[Product]:
        return list(
            Product.objects.filter(is_active=True, quantity__lte=threshold).order_by(
                "quantity", "name"
            )
        )
