"""Catalog store protocol and in-memory implementation.

The query layer only reads from the catalog. Stores return active
products only; drafts and archived products are never candidates.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol

import structlog

from storefront.catalog.clauses import Clause, IdIn
from storefront.domain.entities import Product

logger = structlog.get_logger()


class CatalogStore(Protocol):
    """Read-only view over product records."""

    async def find_products(self, clauses: Sequence[Clause] = ()) -> list[Product]:
        """Return active products satisfying every clause."""
        ...

    async def get_product(self, product_id: str) -> Product | None:
        """Return one active product by id."""
        ...

    async def get_products(self, product_ids: Iterable[str]) -> list[Product]:
        """Return the active products among the given ids."""
        ...


class InMemoryCatalogStore:
    """In-memory catalog store.

    Holds a fixed product list, typically produced by the catalog
    generator or built by tests as a fixture catalog.
    """

    def __init__(self, products: Iterable[Product] = ()) -> None:
        """Initialize store.

        Args:
            products: Products to serve.
        """
        self._products: dict[str, Product] = {}
        for product in products:
            self._products[product.id] = product

    def __len__(self) -> int:
        return len(self._products)

    def add(self, product: Product) -> None:
        """Add or replace a product."""
        self._products[product.id] = product

    async def find_products(self, clauses: Sequence[Clause] = ()) -> list[Product]:
        """Return active products satisfying every clause.

        Args:
            clauses: Pushdown clauses (AND).

        Returns:
            Matching products in id order.
        """
        return [
            product
            for product in sorted(self._products.values(), key=lambda p: p.id)
            if product.is_active and all(c.matches(product) for c in clauses)
        ]

    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product if found and active.
        """
        product = self._products.get(product_id)
        if product is None or not product.is_active:
            return None
        return product

    async def get_products(self, product_ids: Iterable[str]) -> list[Product]:
        """Get active products by IDs."""
        return await self.find_products([IdIn(frozenset(product_ids))])


# Global store instance
_catalog_store: CatalogStore | None = None


def get_catalog_store() -> CatalogStore:
    """Get or create the configured catalog store.

    Returns:
        In-memory store seeded from the generator, or the database store
        when ``catalog_backend`` is "database".
    """
    global _catalog_store
    if _catalog_store is None:
        from storefront.infrastructure.config import settings

        if settings.catalog_backend == "database":
            from storefront.catalog.repository import SqlCatalogStore
            from storefront.infrastructure.database import get_session_factory

            _catalog_store = SqlCatalogStore(get_session_factory())
        else:
            from storefront.catalog.generator import GeneratorConfig, ProductGenerator

            config = (
                GeneratorConfig.full(seed=settings.seed)
                if settings.seed_mode == "full"
                else GeneratorConfig.small(seed=settings.seed)
            )
            products = ProductGenerator(config).generate_list()
            _catalog_store = InMemoryCatalogStore(products)

        logger.info("Catalog store initialized", backend=settings.catalog_backend)
    return _catalog_store


def set_catalog_store(store: CatalogStore | None) -> None:
    """Replace the global store (None resets to lazy creation)."""
    global _catalog_store
    _catalog_store = store
