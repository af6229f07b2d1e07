"""Product service layer (Use Cases).

Orchestrates business logic for the Product aggregate, delegating
persistence to the injected ``IProductRepository`` and stock changes to
the ``InventoryLedger``.

Business rules enforced here:
- (team, category, size, type) must be unique.
- Delete = deactivate; images are removed in the background after commit.
- Manual stock adjustments use the same atomic primitives as orders.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

import structlog
from django.conf import settings
from django.db import transaction

from modules.inventory.ledger import InventoryLedger
from modules.products.exceptions import (
    ImageNotFound,
    NoImagesProvided,
    ProductAlreadyExists,
    ProductNotFound,
)
from modules.products.images import ImageService
from modules.products.models import Product
from modules.products.tasks import cleanup_images

if TYPE_CHECKING:
    from modules.products.dtos import (
        CreateProductDTO,
        StockAdjustmentDTO,
        UpdateProductDTO,
    )
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)

UPDATABLE_FIELDS = (
    "name",
    "team_name",
    "size",
    "price",
    "category",
    "type",
    "color",
    "season",
    "description",
    "is_active",
)


def schedule_image_cleanup(public_ids: List[str]) -> None:
    """Queue blob deletion once the current transaction commits."""
    if public_ids:
        transaction.on_commit(lambda: cleanup_images.delay(list(public_ids)))


class ProductService:
    """Application service for Product use-cases.

    Receives an ``IProductRepository`` via constructor injection (DIP).
    """

    def __init__(
        self,
        repository: IProductRepository,
        ledger: Optional[InventoryLedger] = None,
        images: Optional[ImageService] = None,
    ) -> None:
        self._repo = repository
        self._ledger = ledger or InventoryLedger(repository)
        self._images = images or ImageService()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_product(
        self, dto: CreateProductDTO, image_files: Iterable = ()
    ) -> Product:
        """Create a new product, uploading any supplied images.

        Raises:
            ProductAlreadyExists: same team, category, size and type.
        """
        log = logger.bind(team_name=dto.team_name, size=dto.size)

        if self._repo.get_by_attributes(dto.team_name, dto.category, dto.size, dto.type):
            log.warning("product.duplicate")
            raise ProductAlreadyExists(
                "Product with same team, category, size and type already exists."
            )

        product = Product(**dto.model_dump())
        product.images = [image.as_dict() for image in self._images.upload_many(image_files)]
        product = self._repo.save(product)
        log.info("product.created", product_id=str(product.id))
        return product

    @transaction.atomic
    def update_product(
        self, id: str, dto: UpdateProductDTO, image_files: Iterable = ()
    ) -> Product:
        """Update an existing product; new images replace the old ones.

        Raises:
            ProductNotFound: if the product does not exist.
            ProductAlreadyExists: if the new attributes collide.
        """
        product = self.get_product(id)
        log = logger.bind(product_id=str(id))

        for field in UPDATABLE_FIELDS:
            value = getattr(dto, field)
            if value is not None:
                setattr(product, field, value)

        if self._repo.get_by_attributes(
            product.team_name,
            product.category,
            product.size,
            product.type,
            exclude_id=str(product.id),
        ):
            log.warning("product.duplicate")
            raise ProductAlreadyExists(
                "Product with same team, category, size and type already exists."
            )

        image_files = list(image_files)
        if image_files:
            replaced = [image["public_id"] for image in product.images]
            product.images = [
                image.as_dict() for image in self._images.upload_many(image_files)
            ]
            schedule_image_cleanup(replaced)

        product = self._repo.save(product)
        log.info("product.updated")
        return product

    @transaction.atomic
    def add_images(self, id: str, image_files: Iterable) -> Product:
        """Append uploaded images to the product's gallery.

        Raises:
            ProductNotFound: if the product does not exist.
            NoImagesProvided: if *image_files* is empty.
        """
        image_files = list(image_files)
        if not image_files:
            raise NoImagesProvided("No images provided.")
        product = self.get_product(id)
        uploaded = self._images.upload_many(image_files)
        product.images = [*product.images, *(image.as_dict() for image in uploaded)]
        product = self._repo.save(product)
        logger.info("product.images_added", product_id=str(id), count=len(uploaded))
        return product

    @transaction.atomic
    def remove_image(self, id: str, image_ref: str) -> Product:
        """Detach one image, matched by ``public_id`` or URL.

        Raises:
            ProductNotFound: if the product does not exist.
            ImageNotFound: if no image matches *image_ref*.
        """
        product = self.get_product(id)
        match = next(
            (
                image
                for image in product.images
                if image_ref in (image.get("public_id"), image.get("url"))
            ),
            None,
        )
        if match is None:
            raise ImageNotFound("Image not found.")
        product.images = [image for image in product.images if image is not match]
        product = self._repo.save(product)
        schedule_image_cleanup([match["public_id"]])
        logger.info("product.image_removed", product_id=str(id))
        return product

    @transaction.atomic
    def adjust_stock(self, id: str, dto: StockAdjustmentDTO) -> Product:
        """Restock (``add``) or write off (``subtract``) units.

        Raises:
            ProductNotFound: if the product does not exist.
            InsufficientStock: subtracting more than is on hand.
            InactiveProduct: subtracting from a deactivated product.
        """
        product = self.get_product(id)
        if dto.operation == "add":
            self._ledger.release(product.id, dto.quantity)
        else:
            self._ledger.reserve(product.id, dto.quantity)
        logger.info(
            "product.stock_adjusted",
            product_id=str(id),
            operation=dto.operation,
            quantity=dto.quantity,
        )
        return self.get_product(id)

    @transaction.atomic
    def delete_product(self, id: str) -> None:
        """Deactivate a product and schedule removal of its images.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self.get_product(id)
        public_ids = [image["public_id"] for image in product.images]
        product.images = []
        product.is_active = False
        self._repo.save(product)
        schedule_image_cleanup(public_ids)
        logger.info("product.deactivated", product_id=str(id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """Return a list of products, optionally filtered."""
        return self._repo.list(filters)

    def get_product(self, id: str) -> Product:
        """Retrieve a single product by ID.

        Raises:
            ProductNotFound: if the product does not exist.
        """
        product = self._repo.get_by_id(id)
        if not product:
            raise ProductNotFound(f"Product {id} not found.")
        return product

    def low_stock(self, threshold: Optional[int] = None) -> List[Product]:
        """Active products at or below *threshold* units."""
        if threshold is None:
            threshold = settings.LOW_STOCK_THRESHOLD
        return self._repo.low_stock(threshold)
