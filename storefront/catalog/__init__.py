"""Product Catalog module.

Read-only catalog stores, pushdown clauses and the deterministic
cosmetics catalog generator.
"""

from storefront.catalog.clauses import SEARCHABLE_FIELDS, Clause, FieldEquals, IdIn, TextClause
from storefront.catalog.generator import GeneratorConfig, ProductGenerator
from storefront.catalog.store import (
    CatalogStore,
    InMemoryCatalogStore,
    get_catalog_store,
    set_catalog_store,
)

__all__ = [
    # Clauses
    "SEARCHABLE_FIELDS",
    "Clause",
    "FieldEquals",
    "IdIn",
    "TextClause",
    # Generator
    "GeneratorConfig",
    "ProductGenerator",
    # Stores
    "CatalogStore",
    "InMemoryCatalogStore",
    "get_catalog_store",
    "set_catalog_store",
]
