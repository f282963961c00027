"""
Domain: stock checks and stock movements.

Value objects returned by the stock validation and stock mutation services.
They carry both human-readable messages and structured data so callers can
report every problem in one pass and know exactly which products were
touched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .sale import SaleLine


class StockDirection(str, Enum):
    DECREMENT = "decrement"
    RESTORE = "restore"


@dataclass(frozen=True, slots=True)
class StockShortage:
    """A catalog product that cannot supply the requested quantity."""

    product_id: str
    product_name: str
    requested: int
    available: int

    def message(self) -> str:
        return (
            f"Insufficient stock for {self.product_name}. "
            f"Requested: {self.requested}, available: {self.available}"
        )


@dataclass(frozen=True, slots=True)
class StockValidationResult:
    """
    Outcome of a stock availability check.

    is_valid: True iff there are no violations
    violations: One message per failing item (never just the first)
    shortages: Structured detail for insufficient-quantity violations
    """

    violations: List[str] = field(default_factory=list)
    shortages: List[StockShortage] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.violations) == 0

    def summary(self) -> str:
        return "; ".join(self.violations)


@dataclass(frozen=True, slots=True)
class StockUpdateResult:
    """
    Outcome of applying stock deltas.

    success: True iff no per-item error occurred
    affected: Product ids whose stock was actually written, in call order
    affected_items: The lines that were written (what a compensation must undo)
    error: Per-item errors joined with "; " (None on success)
    """

    direction: StockDirection
    affected: List[str] = field(default_factory=list)
    affected_items: List[SaleLine] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None
