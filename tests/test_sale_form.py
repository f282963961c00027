"""
Tests for `domain/sale_form.py`.

Covers:
- Sanitizing of free text, emails and phones.
- The first offending field is named in the error.
- Client-supplied totals are ignored; the total comes from the items.
- Explicit installment plans must match the count and the total.
- Updates only read header fields.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from domain.sale import PaymentMethod, PaymentStatus
from domain.sale_form import (
    SaleValidationError,
    parse_sale_form,
    parse_sale_update,
    sanitize_email,
    sanitize_phone,
    sanitize_text,
)


def _payload(**overrides):
    payload = {
        "customer_name": "Ana Souza",
        "sale_date": "2025-03-10",
        "items": [
            {"product_id": "p1", "product_name": "Ring", "quantity": 2, "unit_price": "150.00"},
        ],
    }
    payload.update(overrides)
    return payload


def test_sanitizers() -> None:
    assert sanitize_text("  <b>Ana</b> & 'Co' ") == "bAna/b  Co"
    assert sanitize_text(None) == ""
    assert sanitize_email("  Ana.Souza@Example.COM ") == "ana.souza@example.com"
    assert sanitize_phone("+55 (11) 9999-0000 ext") == "+55 (11) 9999-0000"
    assert len(sanitize_text("x" * 2000)) == 1000


def test_parse_valid_form() -> None:
    draft = parse_sale_form(_payload(total_amount="1.00", customer_email="ANA@example.com"))

    assert draft.customer_name == "Ana Souza"
    assert draft.customer_email == "ana@example.com"
    assert draft.sale_date == date(2025, 3, 10)
    assert draft.payment_method is PaymentMethod.CASH
    assert draft.payment_status is PaymentStatus.PENDING
    assert draft.installments_count == 1
    assert draft.total_amount == Decimal("300.00")
    assert draft.items[0].product_id == "p1"


def test_customer_name_is_required_after_sanitizing() -> None:
    with pytest.raises(SaleValidationError) as exc:
        parse_sale_form(_payload(customer_name=" <> "))

    assert exc.value.field == "customer_name"


def test_at_least_one_item_is_required() -> None:
    with pytest.raises(SaleValidationError) as exc:
        parse_sale_form(_payload(items=[]))

    assert exc.value.field == "items"


@pytest.mark.parametrize(
    "item,field",
    [
        ({"product_name": "", "quantity": 1, "unit_price": "1"}, "items[0].product_name"),
        ({"product_name": "Ring", "quantity": 0, "unit_price": "1"}, "items[0].quantity"),
        ({"product_name": "Ring", "quantity": 1.5, "unit_price": "1"}, "items[0].quantity"),
        ({"product_name": "Ring", "quantity": 1, "unit_price": "0.00"}, "items[0].unit_price"),
        ({"product_name": "Ring", "quantity": 1, "unit_price": "abc"}, "items[0].unit_price"),
        ({"product_name": "Ring", "quantity": 1, "unit_price": "1e30"}, "items[0].unit_price"),
        ({"product_name": "Ring", "quantity": "²", "unit_price": "1"}, "items[0].quantity"),
        ({"product_name": "Ring", "quantity": 10**12, "unit_price": "1"}, "items[0].quantity"),
    ],
)
def test_item_errors_name_the_offending_field(item, field) -> None:
    with pytest.raises(SaleValidationError) as exc:
        parse_sale_form(_payload(items=[item]))

    assert exc.value.field == field


def test_only_the_first_error_is_reported() -> None:
    with pytest.raises(SaleValidationError) as exc:
        parse_sale_form(_payload(customer_name="", payment_method="barter"))

    assert exc.value.field == "customer_name"


def test_invalid_enums_and_email() -> None:
    with pytest.raises(SaleValidationError) as exc:
        parse_sale_form(_payload(payment_method="barter"))
    assert exc.value.field == "payment_method"

    with pytest.raises(SaleValidationError) as exc:
        parse_sale_form(_payload(customer_email="not-an-email"))
    assert exc.value.field == "customer_email"


def test_off_catalog_item_and_comma_decimal() -> None:
    draft = parse_sale_form(
        _payload(items=[{"product_id": "", "product_name": "Engraving", "quantity": "1", "unit_price": "12,50"}])
    )

    assert draft.items[0].product_id is None
    assert draft.items[0].unit_price == Decimal("12.50")


def test_explicit_plan_must_match_count_and_total() -> None:
    plan = [
        {"amount": "100.00", "due_date": "2025-04-10"},
        {"amount": "200.00", "due_date": "2025-05-10"},
    ]
    draft = parse_sale_form(_payload(installments_count=2, installments=plan))
    assert [entry.amount for entry in draft.installment_plan] == [Decimal("100.00"), Decimal("200.00")]

    with pytest.raises(SaleValidationError) as exc:
        parse_sale_form(_payload(installments_count=3, installments=plan))
    assert exc.value.field == "installments"

    with pytest.raises(SaleValidationError) as exc:
        parse_sale_form(
            _payload(installments_count=2, installments=[plan[0], {"amount": "150.00", "due_date": "2025-05-10"}])
        )
    assert exc.value.field == "installments"

    with pytest.raises(SaleValidationError) as exc:
        parse_sale_form(
            _payload(installments_count=2, installments=[plan[0], {"amount": "1e40", "due_date": "2025-05-10"}])
        )
    assert exc.value.field == "installments[1].amount"


def test_parse_update_reads_header_fields_only() -> None:
    update = parse_sale_update(
        {
            "customer_name": " Ana ",
            "payment_status": "paid",
            "total_amount": "1.00",
            "items": [],
        }
    )

    assert update.customer_name == "Ana"
    assert update.payment_status is PaymentStatus.PAID
    assert update.payment_method is None
    assert update.sale_date is None


def test_parse_update_rejects_empty_name_and_clears_email() -> None:
    with pytest.raises(SaleValidationError):
        parse_sale_update({"customer_name": "  "})

    assert parse_sale_update({"customer_email": ""}).customer_email == ""
