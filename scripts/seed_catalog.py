#!/usr/bin/env python3
"""Seed product catalog script.

Generates a deterministic digital-goods catalog (products and reviews)
and writes it to the SQL document store.

Usage:
    python scripts/seed_catalog.py --mode small
    python scripts/seed_catalog.py --mode full --seed 7
    python scripts/seed_catalog.py --database-url sqlite+aiosqlite:///catalog.db
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.catalog.generator import GeneratorConfig, ProductGenerator
from storefront.catalog.service import PRODUCTS, REVIEWS
from storefront.infrastructure.config import settings
from storefront.infrastructure.logging import configure_logging
from storefront.infrastructure.sql_store import SqlDocumentStore


async def seed_catalog(
    store: SqlDocumentStore,
    config: GeneratorConfig,
    clear: bool = True,
) -> dict:
    """Seed the catalog into a store.

    Args:
        store: Target SQL document store.
        config: Generator configuration.
        clear: Whether to clear existing documents.

    Returns:
        Seeding result.
    """
    deleted = 0
    if clear:
        deleted += await store.clear(REVIEWS)
        deleted += await store.clear(PRODUCTS)

    generator = ProductGenerator(config)
    products = 0
    reviews = 0
    categories: set[str] = set()
    for product in generator.generate():
        await store.put(PRODUCTS, product.id, product.to_document())
        for review in generator.generate_reviews(product):
            await store.put(REVIEWS, review.id, review.to_document())
            reviews += 1
        categories.add(product.category)
        products += 1

    return {
        "deleted": deleted,
        "products_created": products,
        "reviews_created": reviews,
        "categories_used": len(categories),
    }


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed the storefront product catalog",
    )
    parser.add_argument(
        "--mode",
        choices=["small", "full"],
        default="small",
        help="Catalog size: small (~70 products) or full (~270 products)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: the mode's seed)",
    )
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="SQLAlchemy async URL (default: DATABASE_URL setting)",
    )
    parser.add_argument(
        "--no-clear",
        action="store_true",
        help="Don't clear existing documents before seeding",
    )

    args = parser.parse_args()
    configure_logging(settings.log_level, settings.log_json)

    config = GeneratorConfig.small() if args.mode == "small" else GeneratorConfig.full()
    if args.seed is not None:
        config.seed = args.seed

    print("=" * 60)
    print("Storefront Catalog Seeder")
    print("=" * 60)
    print(f"Mode: {args.mode}")
    print(f"Seed: {config.seed}")
    print(f"Clear existing: {not args.no_clear}")
    print()

    store = SqlDocumentStore.from_url(args.database_url)
    try:
        print("Creating database tables...")
        await store.create_all()
        print("Tables ready.")
        print()

        result = await seed_catalog(store, config, clear=not args.no_clear)
        print(f"  Deleted: {result['deleted']} existing documents")
        print(f"  Products: {result['products_created']}")
        print(f"  Reviews: {result['reviews_created']}")
        print(f"  Categories: {result['categories_used']}")
    finally:
        await store.close()

    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
