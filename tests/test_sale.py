"""
Tests for `domain/sale.py`.

Covers:
- total_amount is the sum of quantity * unit_price, in cents.
- SaleItem rejects quantities < 1 and prices < 0.01.
- Installment plan detection on drafts.
- Sale is immutable (frozen).
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import date, datetime
from decimal import Decimal

import pytest

from domain.sale import (
    InstallmentPlanEntry,
    PaymentMethod,
    PaymentStatus,
    Sale,
    SaleDraft,
    SaleItem,
    SaleLine,
    SaleUpdate,
    compute_total,
    to_money,
)


def test_total_is_sum_of_line_totals() -> None:
    lines = [
        SaleLine("Ring", 2, Decimal("150.00"), product_id="p1"),
        SaleLine("Gift wrap", 1, Decimal("4.99")),
    ]

    assert compute_total(lines) == Decimal("304.99")
    assert lines[0].total_price == Decimal("300.00")
    assert lines[1].is_catalog_item is False


def test_to_money_rounds_half_up_to_cents() -> None:
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(3) == Decimal("3.00")


def test_sale_item_rejects_invalid_quantity_and_price() -> None:
    with pytest.raises(ValueError):
        SaleItem(item_id="i", sale_id="s", product_name="Ring", quantity=0, unit_price=Decimal("1.00"))

    with pytest.raises(ValueError):
        SaleItem(item_id="i", sale_id="s", product_name="Ring", quantity=1, unit_price=Decimal("0.00"))


def test_sale_item_created_at_must_be_utc() -> None:
    with pytest.raises(ValueError):
        SaleItem(
            item_id="i",
            sale_id="s",
            product_name="Ring",
            quantity=1,
            unit_price=Decimal("1.00"),
            created_at=datetime(2025, 1, 1),
        )


def _draft(**overrides) -> SaleDraft:
    values = dict(
        customer_name="Ana",
        items=[SaleLine("Ring", 1, Decimal("90.00"), product_id="p1")],
        sale_date=date(2025, 1, 10),
    )
    values.update(overrides)
    return SaleDraft(**values)


def test_draft_installment_plan_detection() -> None:
    assert _draft().has_installment_plan is False
    assert _draft(installments_count=3).has_installment_plan is True
    assert _draft(payment_method=PaymentMethod.INSTALLMENTS).has_installment_plan is True
    assert _draft(
        installment_plan=[InstallmentPlanEntry(Decimal("90.00"), date(2025, 2, 10))]
    ).has_installment_plan is True


def test_sale_update_is_empty() -> None:
    assert SaleUpdate().is_empty() is True
    assert SaleUpdate(notes="").is_empty() is False


def test_sale_catalog_lines_skip_off_catalog_items() -> None:
    sale = Sale(
        sale_id="s1",
        customer_name="Ana",
        total_amount=Decimal("20.00"),
        payment_method=PaymentMethod.CASH,
        payment_status=PaymentStatus.PAID,
        installments_count=1,
        sale_date=date(2025, 1, 1),
        items=[
            SaleItem("i1", "s1", "Ring", 1, Decimal("10.00"), product_id="p1"),
            SaleItem("i2", "s1", "Engraving", 1, Decimal("10.00")),
        ],
    )

    lines = sale.catalog_lines()
    assert [line.product_id for line in lines] == ["p1"]


def test_sale_is_immutable() -> None:
    sale = Sale(
        sale_id="s1",
        customer_name="Ana",
        total_amount=Decimal("10.00"),
        payment_method=PaymentMethod.CASH,
        payment_status=PaymentStatus.PENDING,
        installments_count=1,
        sale_date=date(2025, 1, 1),
    )

    with pytest.raises(FrozenInstanceError):
        sale.total_amount = Decimal("0")  # type: ignore[misc]
