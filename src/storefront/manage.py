"""Storefront database management CLI.

Usage:
    storefront-manage setup-db   # Create all tables
    storefront-manage drop-db    # Drop all tables
    storefront-manage seed       # Load demo products and coupons
"""

import argparse
import sys
from datetime import UTC, datetime, timedelta

from rich.console import Console

console = Console()


def _domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    domain = _domain()
    console.print(f"Creating [bold]{domain.name}[/bold] database schema...")
    setup_db(domain)
    console.print("  schema ready.", style="green")


def drop_database():
    from storefront.utils.db import drop_db

    domain = _domain()
    console.print(f"Dropping [bold]{domain.name}[/bold] database schema...")
    drop_db(domain)
    console.print("  schema dropped.", style="yellow")


def seed_database():
    from storefront.catalogue.product import Product, ProductRepository
    from storefront.ordering.coupon.coupon import Coupon, CouponRepository

    domain = _domain()
    with domain.domain_context():
        products = ProductRepository()
        for product in (
            Product(name="Linen Shirt", price=89_000, stock=40, category="men", weight=0.3, featured=True),
            Product(name="Leather Boots", price=320_000, stock=12, category="shoes", weight=1.8),
            Product(name="Canvas Tote", price=45_000, stock=100, category="accessories", weight=0.4),
        ):
            created = products.create(product)
            console.print(f"  product {created.name} -> {created.id}")

        coupons = CouponRepository()
        coupons.create(
            Coupon(
                code="WELCOME10",
                discount_type="percentage",
                discount_value=10,
                max_discount=50_000,
                minimum_amount=100_000,
                usage_limit=500,
                valid_until=datetime.now(UTC) + timedelta(days=90),
            )
        )
        console.print("  coupon WELCOME10")
    console.print("Done.", style="green")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("seed", help="Load demo products and coupons")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed":
        seed_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
