#!/usr/bin/env python3
"""Load the generated cosmetics catalog into the database backend.

The generator is deterministic, so the same ``--seed`` and ``--mode``
always produce the same products.

    python scripts/seed_catalog.py --mode full --seed 7
    python scripts/seed_catalog.py --database-url sqlite+aiosqlite:///./storefront.db --keep
"""

import argparse
import asyncio
from collections import Counter

import structlog

from storefront.catalog.generator import GeneratorConfig, ProductGenerator
from storefront.catalog.repository import SqlCatalogStore
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import (
    create_tables,
    dispose_engine,
    get_engine,
    get_session_factory,
)
from storefront.infrastructure.logging import configure_logging

logger = structlog.get_logger()

SIZES = {"small": GeneratorConfig.small, "full": GeneratorConfig.full}


async def load_catalog(mode: str, seed: int, replace: bool = True) -> dict:
    """Generate products and write them through the SQL catalog store.

    Returns:
        Counts of removed and written rows plus the product mix by status.
    """
    products = ProductGenerator(SIZES[mode](seed=seed)).generate_list()

    store = SqlCatalogStore(get_session_factory())
    removed = await store.delete_all() if replace else 0
    written = await store.save_all(products)

    return {
        "removed": removed,
        "written": written,
        "categories": len({p.category for p in products}),
        "brands": len({p.brand for p in products}),
        "by_status": dict(Counter(p.status.value for p in products)),
    }


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--mode", choices=sorted(SIZES), default=settings.seed_mode)
    parser.add_argument("--seed", type=int, default=settings.seed)
    parser.add_argument("--database-url", help="defaults to the DATABASE_URL setting")
    parser.add_argument(
        "--keep",
        action="store_true",
        help="append to the existing rows instead of replacing them",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    configure_logging(settings)

    get_engine(args.database_url)
    try:
        await create_tables()
        summary = await load_catalog(args.mode, args.seed, replace=not args.keep)
    finally:
        await dispose_engine()

    logger.info("Catalog seeded", mode=args.mode, seed=args.seed, **summary)


if __name__ == "__main__":
    asyncio.run(main())
