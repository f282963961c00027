"""
Domain: Sales and their line items.

Rules captured here:
- A Sale owns one or more SaleItems and, when paid in parts, a schedule of
  Installments.
- total_amount equals the sum of quantity * unit_price over the items. It is
  always recomputed from the items and never taken from the caller.
- A SaleItem may reference a catalog product (product_id) or be an ad-hoc
  line with no product, in which case no stock is involved.

This module contains only pure domain entities/value objects: no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import List, Optional, Sequence

from .installment import Installment
from .time import require_utc_timestamp

CENT = Decimal("0.01")
MIN_UNIT_PRICE = CENT


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PIX = "pix"
    BANK_TRANSFER = "bank_transfer"
    INSTALLMENTS = "installments"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PARTIAL = "partial"
    CANCELLED = "cancelled"


def to_money(value: Decimal | int | str) -> Decimal:
    """Quantize a value to cents (half-up)."""

    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class SaleLine:
    """
    A requested line of a sale before it is persisted.

    product_id is None for off-catalog items.
    """

    product_name: str
    quantity: int
    unit_price: Decimal
    product_id: Optional[str] = None

    @property
    def total_price(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    @property
    def is_catalog_item(self) -> bool:
        return self.product_id is not None


@dataclass(frozen=True, slots=True)
class SaleItem:
    """Persisted line item of a Sale."""

    item_id: str
    sale_id: str
    product_name: str
    quantity: int
    unit_price: Decimal
    product_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.unit_price < MIN_UNIT_PRICE:
            raise ValueError("unit_price must be >= 0.01")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def total_price(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)

    def as_line(self) -> SaleLine:
        return SaleLine(
            product_name=self.product_name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            product_id=self.product_id,
        )


@dataclass(frozen=True, slots=True)
class InstallmentPlanEntry:
    """Caller-supplied installment (amount and due date) for an explicit plan."""

    amount: Decimal
    due_date: date


@dataclass(frozen=True, slots=True)
class SaleDraft:
    """
    Sanitized and validated input for creating a sale.

    Built by `domain.sale_form.parse_sale_form`; services trust its shape.
    """

    customer_name: str
    items: Sequence[SaleLine]
    sale_date: date
    payment_method: PaymentMethod = PaymentMethod.CASH
    payment_status: PaymentStatus = PaymentStatus.PENDING
    installments_count: int = 1
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    first_due_date: Optional[date] = None
    installment_plan: Sequence[InstallmentPlanEntry] = ()

    @property
    def total_amount(self) -> Decimal:
        return compute_total(self.items)

    @property
    def has_installment_plan(self) -> bool:
        return (
            self.payment_method is PaymentMethod.INSTALLMENTS
            or self.installments_count > 1
            or len(self.installment_plan) > 0
        )


@dataclass(frozen=True, slots=True)
class SaleUpdate:
    """
    Header-only changes to an existing sale.

    Fields left as None are not touched. Items, stock, installments and the
    total are never changed through an update.
    """

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    sale_date: Optional[date] = None
    notes: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


@dataclass(frozen=True, slots=True)
class Sale:
    """A recorded sale (header) with its items and installments."""

    sale_id: str
    customer_name: str
    total_amount: Decimal
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    installments_count: int
    sale_date: date
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[SaleItem] = field(default_factory=list)
    installments: List[Installment] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.installments_count < 1:
            raise ValueError("installments_count must be >= 1")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
        if self.updated_at is not None:
            require_utc_timestamp("updated_at", self.updated_at)

    def catalog_lines(self) -> List[SaleLine]:
        """Lines that reference a catalog product (the ones that move stock)."""

        return [item.as_line() for item in self.items if item.product_id is not None]


def compute_total(lines: Sequence[SaleLine] | Sequence[SaleItem]) -> Decimal:
    """Sum of quantity * unit_price over the lines, in cents."""

    total = sum((line.unit_price * line.quantity for line in lines), Decimal("0"))
    return to_money(total)
