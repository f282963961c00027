"""
Stock mutation service.

The only code allowed to write products.stock_quantity. Applies signed
quantity deltas one product at a time:
- DECREMENT (a sale): new = current - quantity, refused if it would go below 0
- RESTORE (a compensation or a deleted sale): new = current + quantity

Each write is a conditional update against the value just read, so a
concurrent change to the same row makes the write match nothing instead of
overwriting it. That per-item failure is reported like any other; nothing is
retried.

Errors are isolated per item: one failing product does not stop the others.
The caller receives one aggregate error string and the exact list of products
that were written, which is what a compensation has to undo.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from domain.sale import SaleLine
from domain.stock import StockDirection, StockUpdateResult
from repositories.product_repository import compare_and_set_stock, get_product_stock

logger = logging.getLogger(__name__)


def _apply_one(product_id: str, item: SaleLine, direction: StockDirection) -> None:
    """
    Apply the delta for one catalog line.

    Raises:
        ValueError: the product is missing, the stock would go negative, or
            the row changed concurrently
        RuntimeError: storage error
    """

    product = get_product_stock(product_id)
    if product is None:
        raise ValueError(f"Product not found: {item.product_name}")

    if direction is StockDirection.DECREMENT:
        new_quantity = product.stock_quantity - item.quantity
        if new_quantity < 0:
            raise ValueError(
                f"Insufficient stock for {item.product_name} "
                f"(requested {item.quantity}, available {product.stock_quantity})"
            )
    else:
        new_quantity = product.stock_quantity + item.quantity

    if not compare_and_set_stock(product_id, product.stock_quantity, new_quantity):
        raise ValueError(f"Stock for {item.product_name} changed concurrently")

    logger.info(
        "Stock %s for product %s: %d -> %d",
        direction.value,
        product_id,
        product.stock_quantity,
        new_quantity,
    )


def apply_stock_delta(items: Sequence[SaleLine], direction: StockDirection) -> StockUpdateResult:
    """
    Apply stock deltas for every catalog line.

    Lines without a product_id are off-catalog and are skipped.

    Args:
        items: Sale lines whose quantities are applied
        direction: StockDirection.DECREMENT or StockDirection.RESTORE

    Returns:
        StockUpdateResult with the affected product ids/lines and the joined
        per-item errors (None when every line succeeded)
    """

    affected: List[str] = []
    affected_items: List[SaleLine] = []
    errors: List[str] = []

    for item in items:
        if item.product_id is None:
            continue
        try:
            _apply_one(item.product_id, item, direction)
        except (ValueError, RuntimeError) as e:
            errors.append(str(e))
            continue
        affected.append(item.product_id)
        affected_items.append(item)

    error = "; ".join(errors) if errors else None
    if error:
        logger.warning("Stock %s finished with errors: %s", direction.value, error)

    return StockUpdateResult(
        direction=direction,
        affected=affected,
        affected_items=affected_items,
        error=error,
    )


def decrement_stock(items: Sequence[SaleLine]) -> StockUpdateResult:
    return apply_stock_delta(items, StockDirection.DECREMENT)


def restore_stock(items: Sequence[SaleLine]) -> StockUpdateResult:
    return apply_stock_delta(items, StockDirection.RESTORE)


__all__ = [
    "apply_stock_delta",
    "decrement_stock",
    "restore_stock",
]
