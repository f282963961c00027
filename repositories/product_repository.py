"""
Product repository (persistence).

The products table is owned by catalog management. This module exposes only
what the sales core needs: reading the stock view of a product and writing
its stock counter with a conditional update.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from domain.product import ProductStock
from repositories import client as db
from repositories.rows import execute

# Supabase table name for catalog products.
# Keep this aligned with your database schema.
_PRODUCTS_TABLE: str = "products"

_STOCK_COLUMNS: str = "id, title, stock_quantity, is_active"


def _row_to_product(row: Mapping[str, Any]) -> ProductStock:
    """Convert a Supabase row into a ProductStock."""

    return ProductStock(
        product_id=str(row["id"]),
        title=str(row.get("title") or ""),
        is_active=bool(row.get("is_active", False)),
        stock_quantity=int(row.get("stock_quantity") or 0),
    )


def get_product_stock(product_id: str) -> Optional[ProductStock]:
    """
    Fetch the stock view of a product.

    Returns:
        ProductStock or None if no product has this id
    """

    rows = execute(
        db.get_client()
        .table(_PRODUCTS_TABLE)
        .select(_STOCK_COLUMNS)
        .eq("id", product_id)
        .limit(1),
        "fetch product",
    )
    if not rows:
        return None
    return _row_to_product(rows[0])


def compare_and_set_stock(product_id: str, expected: int, new_quantity: int) -> bool:
    """
    Write `new_quantity` only if the stored quantity still equals `expected`.

    This is the per-row atomic read-modify-write used by the stock service:
    a write based on a stale read matches zero rows instead of overwriting a
    concurrent change.

    Returns:
        True if the row was updated, False if it changed (or vanished) since
        it was read
    """

    if new_quantity < 0:
        raise ValueError("stock_quantity must never be negative")

    rows = execute(
        db.get_client()
        .table(_PRODUCTS_TABLE)
        .update({"stock_quantity": new_quantity})
        .eq("id", product_id)
        .eq("stock_quantity", expected),
        "update product stock",
    )
    return len(rows) > 0


def list_low_stock_products(threshold: int, *, active_only: bool = True) -> List[ProductStock]:
    """
    List products whose stock is at or below `threshold`, lowest first.
    """

    query = (
        db.get_client()
        .table(_PRODUCTS_TABLE)
        .select(_STOCK_COLUMNS)
        .lte("stock_quantity", threshold)
    )
    if active_only:
        query = query.eq("is_active", True)

    rows = execute(query.order("stock_quantity"), "list low stock products")
    return [_row_to_product(row) for row in rows]


__all__ = [
    "compare_and_set_stock",
    "get_product_stock",
    "list_low_stock_products",
]
