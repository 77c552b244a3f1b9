"""Product repository interface.

Extends ``IRepository[Product]`` with the stock operations the order
commit needs.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def decrement_stock(self, id: UUID, quantity: int) -> int:
        """Atomically take *quantity* units off the product's stock.

        Returns the remaining stock.  Raises ``ProductNotFound`` or
        ``InsufficientStock`` without touching the row otherwise.
        """

