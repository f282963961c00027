"""
Check stock levels - list active products that are running out.
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.product_repository import list_low_stock_products


def check_stock_levels(threshold: int, include_inactive: bool = False) -> int:
    """Print products with stock at or below the threshold."""

    products = list_low_stock_products(threshold, active_only=not include_inactive)

    print("=" * 50)
    print(f"PRODUCTS WITH STOCK <= {threshold}")
    print("=" * 50)

    if not products:
        print("All products are above the threshold.")
        return 0

    for product in products:
        flag = "" if product.is_active else " (inactive)"
        marker = "OUT " if product.stock_quantity == 0 else "    "
        print(f"{marker}{product.stock_quantity:>5}  {product.title}{flag}")

    out_of_stock = sum(1 for p in products if p.stock_quantity == 0)
    print("-" * 50)
    print(f"Low stock: {len(products)}   Out of stock: {out_of_stock}")
    print("=" * 50)
    return len(products)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="List products running low on stock")
    parser.add_argument("--threshold", "-t", type=int, default=2, help="Stock level to report at or below")
    parser.add_argument("--include-inactive", action="store_true", help="Also list inactive products")
    args = parser.parse_args()

    check_stock_levels(args.threshold, args.include_inactive)
