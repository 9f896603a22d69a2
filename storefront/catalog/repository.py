"""Database-backed catalog store.

Translates pushdown clauses into SQL conditions so that text matching
and equality filters run in the database.
"""

from collections.abc import Iterable, Sequence
from typing import Any

import structlog
from sqlalchemy import and_, delete, false, func, or_, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.catalog.clauses import Clause, FieldEquals, IdIn, TextClause
from storefront.catalog.models import ProductRecord
from storefront.domain.entities import Product, ProductStatus
from storefront.domain.exceptions import CatalogUnavailableError

logger = structlog.get_logger()


class SqlCatalogStore:
    """Catalog store reading the products table.

    Example usage:
        store = SqlCatalogStore(get_session_factory())
        serums = await store.find_products(
            [TextClause(("serum",)), FieldEquals("category", "스킨케어")]
        )
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize store with a session factory.

        Args:
            session_factory: Async SQLAlchemy session factory.
        """
        self.session_factory = session_factory

    async def find_products(self, clauses: Sequence[Clause] = ()) -> list[Product]:
        """Find active products matching every clause.

        Args:
            clauses: Pushdown clauses (AND).

        Returns:
            Matching products in id order.

        Raises:
            CatalogUnavailableError: On database failure.
        """
        conditions = [ProductRecord.status == ProductStatus.ACTIVE.value]
        conditions.extend(self._to_condition(clause) for clause in clauses)

        query = select(ProductRecord).where(and_(*conditions)).order_by(ProductRecord.id)
        return await self._fetch(query, operation="find_products")

    async def get_product(self, product_id: str) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product if found and active.
        """
        products = await self.find_products([IdIn(frozenset({product_id}))])
        return products[0] if products else None

    async def get_products(self, product_ids: Iterable[str]) -> list[Product]:
        """Get active products by IDs."""
        return await self.find_products([IdIn(frozenset(product_ids))])

    async def save_all(self, products: list[Product]) -> int:
        """Insert products.

        Args:
            products: Products to save.

        Returns:
            Number of saved products.
        """
        async with self.session_factory() as session:
            session.add_all([ProductRecord.from_entity(p) for p in products])
            await session.commit()
        return len(products)

    async def delete_all(self) -> int:
        """Delete every product.

        Returns:
            Number of deleted products.
        """
        async with self.session_factory() as session:
            count = (await session.execute(select(func.count(ProductRecord.id)))).scalar_one()
            await session.execute(delete(ProductRecord))
            await session.commit()
        return count

    async def _fetch(self, query: Any, operation: str) -> list[Product]:
        """Run a select and convert rows.

        Raises:
            CatalogUnavailableError: On database failure.
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                return [record.to_entity() for record in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(
                "Catalog query failed",
                operation=operation,
                error=str(e),
            )
            raise CatalogUnavailableError(str(e), operation=operation) from e

    def _to_condition(self, clause: Clause) -> Any:
        """Translate a clause into a SQLAlchemy condition.

        Args:
            clause: Pushdown clause.

        Returns:
            SQLAlchemy boolean expression.
        """
        if isinstance(clause, TextClause):
            if not clause.tokens:
                return true()
            columns = [getattr(ProductRecord, f) for f in clause.fields]
            return and_(
                *[
                    or_(*[func.lower(column).contains(token, autoescape=True) for column in columns])
                    for token in clause.tokens
                ]
            )
        if isinstance(clause, FieldEquals):
            return getattr(ProductRecord, clause.field) == clause.value
        if isinstance(clause, IdIn):
            if not clause.ids:
                return false()
            return ProductRecord.id.in_(sorted(clause.ids))
        raise TypeError(f"Unsupported clause: {clause!r}")
