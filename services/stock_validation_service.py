"""
Stock validation service.

Checks, without side effects, whether every requested line of a sale can be
supplied from the catalog:
- the line references a product (off-catalog lines are reported),
- the product exists and is active,
- the product has enough units, also when several lines ask for the same
  product.

Validation is exhaustive: every line is checked and every problem is
reported, so the caller can show all of them at once.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Dict, List, Sequence

from domain.product import ProductStock
from domain.sale import SaleLine
from domain.stock import StockShortage, StockValidationResult
from repositories.product_repository import get_product_stock

logger = logging.getLogger(__name__)


def validate_stock(items: Sequence[SaleLine]) -> StockValidationResult:
    """
    Validate stock availability for the lines of a sale.

    Args:
        items: Requested sale lines

    Returns:
        StockValidationResult (is_valid, violations, shortages)

    Example:
        result = validate_stock([SaleLine("Ring", 3, Decimal("10.00"), product_id="p1")])
        if not result.is_valid:
            print(result.summary())
    """

    violations: List[str] = []
    shortages: List[StockShortage] = []

    products: Dict[str, ProductStock] = {}
    requested: "OrderedDict[str, int]" = OrderedDict()

    for item in items:
        if item.product_id is None:
            violations.append(f"Product id missing for {item.product_name}")
            continue

        product = products.get(item.product_id)
        if product is None:
            try:
                product = get_product_stock(item.product_id)
            except RuntimeError as e:
                violations.append(f"Could not check stock for {item.product_name}: {e}")
                continue
            if product is None:
                violations.append(f"Product not found: {item.product_name}")
                continue
            products[item.product_id] = product

        if not product.is_active:
            violations.append(f"Product inactive: {product.title}")
            continue

        if product.stock_quantity < item.quantity:
            shortage = StockShortage(
                product_id=product.product_id,
                product_name=product.title,
                requested=item.quantity,
                available=product.stock_quantity,
            )
            shortages.append(shortage)
            violations.append(shortage.message())
            continue

        requested[product.product_id] = requested.get(product.product_id, 0) + item.quantity

    # Lines for the same product that each fit alone may still exceed the stock together.
    for product_id, total in requested.items():
        product = products[product_id]
        already_short = any(s.product_id == product_id for s in shortages)
        if total > product.stock_quantity and not already_short:
            shortage = StockShortage(
                product_id=product_id,
                product_name=product.title,
                requested=total,
                available=product.stock_quantity,
            )
            shortages.append(shortage)
            violations.append(shortage.message())

    if violations:
        logger.warning("Stock validation failed: %s", "; ".join(violations))

    return StockValidationResult(violations=violations, shortages=shortages)


__all__ = ["validate_stock"]
