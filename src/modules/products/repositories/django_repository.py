"""Django ORM implementation of the Product repository.

Look-ups follow the Null Object pattern: they return ``None`` instead of
raising, and the caller decides how a missing product is reported.
Stock decrements are the exception: they raise, because they run inside
the order transaction and must abort it.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from modules.products.exceptions import InsufficientStock, ProductNotFound
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


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

    @transaction.atomic
    def save(self, entity: Product) -> Product:
        """Persist (create or update) a product."""
        entity.save()
        logger.info("product.saved", product_id=str(entity.id))
        return entity

    def decrement_stock(self, id: UUID, quantity: int) -> int:
        """Conditional ``UPDATE ... SET stock = stock - n WHERE stock >= n``.

        The single statement is the lock: two concurrent checkouts cannot
        both pass the ``stock >= n`` guard for the last units.
        """
        updated = Product.objects.filter(id=id, stock__gte=quantity).update(
            stock=F("stock") - quantity
        )
        if not updated:
            product = self.get_by_id(str(id))
            if product is None:
                raise ProductNotFound(f"Product {id} not found.")
            raise InsufficientStock(
                f"Product {id}: requested {quantity}, available {product.stock}."
            )
        remaining = Product.objects.filter(id=id).values_list("stock", flat=True).first()
        logger.info(
            "product.stock_decremented",
            product_id=str(id),
            quantity=quantity,
            remaining=remaining,
        )
        return remaining

