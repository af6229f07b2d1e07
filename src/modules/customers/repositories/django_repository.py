"""Django ORM implementation of the Customer repository.

Error handling follows the Null Object pattern: methods return ``None``
(or ``False``) instead of raising; the Service Layer decides how to
translate a missing entity into a domain error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.customers.models import Customer, normalize_phone
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Customer]:
        """Retrieve a customer by primary key.

        Returns ``None`` for non-existent or invalid IDs (e.g. malformed UUID).
        """
        try:
            return Customer.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[Customer]:
        """List customers with optional Django ORM look-ups.

        Examples of valid filters::

            {"is_active": True}
            {"name__icontains": "nguyen", "is_active": True}
        """
        queryset = Customer.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: Customer) -> Customer:
        """Persist (create or update) a customer."""
        is_new = entity._state.adding
        entity.save()
        logger.info("customer.saved", customer_id=str(entity.id), is_new=is_new)
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        """Deactivate a customer by ID.

        Returns ``False`` if no customer exists with the given ID.
        """
        customer = self.get_by_id(id)
        if not customer:
            return False
        customer.is_active = False
        customer.save(update_fields=["is_active"])
        logger.info("customer.deactivated", customer_id=str(id))
        return True

    def get_active_by_phone(
        self, phone: str, exclude_id: Optional[str] = None
    ) -> Optional[Customer]:
        queryset = Customer.objects.filter(phone=normalize_phone(phone), is_active=True)
        if exclude_id:
            queryset = queryset.exclude(id=exclude_id)
        return queryset.first()

    def exists(self, id: str) -> bool:
        try:
            return Customer.objects.filter(id=id, is_active=True).exists()
        except (ValueError, ValidationError):
            return False
