"""Customer use cases.

Rules:
- Phone number unique among active customers.
- Delete = deactivate (orders keep their customer reference).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import structlog
from django.db import transaction

from modules.customers.exceptions import CustomerAlreadyExists, CustomerNotFound
from modules.customers.models import Customer

if TYPE_CHECKING:
    from modules.customers.dtos import CreateCustomerDTO, UpdateCustomerDTO
    from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerService:
    """Customer use cases over an injected ``ICustomerRepository``."""

    def __init__(self, repository: ICustomerRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_customer(self, dto: CreateCustomerDTO) -> Customer:
        """Create a new customer.

        Raises:
            CustomerAlreadyExists: an active customer already uses the phone.
        """
        if self._repo.get_active_by_phone(dto.phone):
            logger.warning("customer.duplicate_phone", phone=dto.phone)
            raise CustomerAlreadyExists("Phone number already registered.")

        customer = Customer(
            name=dto.name,
            phone=dto.phone,
            email=dto.email or "",
            address=dto.address,
            notes=dto.notes,
        )
        customer = self._repo.save(customer)
        logger.info("customer.created", customer_id=str(customer.id))
        return customer

    @transaction.atomic
    def update_customer(self, id: str, dto: UpdateCustomerDTO) -> Customer:
        """Update an existing customer with the supplied fields.

        Raises:
            CustomerNotFound: if the customer does not exist.
            CustomerAlreadyExists: if the new phone collides.
        """
        customer = self._repo.get_by_id(id)
        if not customer:
            raise CustomerNotFound(f"Customer {id} not found.")

        log = logger.bind(customer_id=str(id))

        if dto.phone is not None and self._repo.get_active_by_phone(
            dto.phone, exclude_id=str(customer.id)
        ):
            log.warning("customer.duplicate_phone")
            raise CustomerAlreadyExists("Phone number already registered.")

        for field in ("name", "phone", "email", "address", "notes", "is_active"):
            value = getattr(dto, field)
            if value is not None:
                setattr(customer, field, value)

        customer = self._repo.save(customer)
        log.info("customer.updated")
        return customer

    @transaction.atomic
    def delete_customer(self, id: str) -> None:
        """Deactivate a customer.

        Raises:
            CustomerNotFound: if the customer does not exist.
        """
        if not self._repo.delete(id):
            raise CustomerNotFound(f"Customer {id} not found.")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_customers(self, search: Optional[str] = None) -> List[Customer]:
        """Active customers, optionally matching *search* on name or phone."""
        customers = self._repo.list({"is_active": True})
        if not search:
            return customers
        needle = search.strip().lower()
        return [
            c for c in customers if needle in c.name.lower() or needle in c.phone
        ]

    def get_customer(self, id: str) -> Customer:
        """Retrieve a single customer by ID.

        Raises:
            CustomerNotFound: if the customer does not exist.
        """
        customer = self._repo.get_by_id(id)
        if not customer:
            raise CustomerNotFound(f"Customer {id} not found.")
        return customer
