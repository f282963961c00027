"""
Domain: catalog products as seen by the sales core.

Products are owned by catalog management. The sales core only reads the
identity, the active flag and the stock counter, and writes the stock
counter through the stock service.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ProductStock:
    """
    Stock view of a catalog product.

    Invariant: stock_quantity is never negative.
    """

    product_id: str
    title: str
    is_active: bool
    stock_quantity: int

    def __post_init__(self) -> None:
        if self.stock_quantity < 0:
            raise ValueError("stock_quantity must be >= 0")

    def can_supply(self, quantity: int) -> bool:
        """True if the product is active and has at least `quantity` units."""

        return self.is_active and self.stock_quantity >= quantity
