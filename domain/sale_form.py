"""
Domain: sanitize-and-validate boundary for sale input.

Raw input (an API payload, a CLI mapping) passes through exactly one function
per variant before reaching the services:

- parse_sale_form(raw)   -> SaleDraft
- parse_sale_update(raw) -> SaleUpdate

Both sanitize free text the same way (strip markup characters, trim, cap the
length) and raise SaleValidationError naming the first offending field.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, List, Mapping, Optional, Sequence

from .sale import (
    MIN_UNIT_PRICE,
    InstallmentPlanEntry,
    PaymentMethod,
    PaymentStatus,
    SaleDraft,
    SaleLine,
    SaleUpdate,
    compute_total,
    to_money,
)
from .time import utc_today

_TEXT_MAX = 1000
_EMAIL_MAX = 254
_PHONE_MAX = 20
_MAX_QUANTITY = 1_000_000
_MAX_AMOUNT = Decimal("1000000000")

_INTEGER = re.compile(r"^-?[0-9]+$")
_UNSAFE_TEXT_CHARS = re.compile(r"[<>\"'&]")
_UNSAFE_EMAIL_CHARS = re.compile(r"[^\w@.-]")
_UNSAFE_PHONE_CHARS = re.compile(r"[^\d\s\-()+]")
_EMAIL_SHAPE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class SaleValidationError(ValueError):
    """Raised when sale input is malformed. `field` names the first bad field."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


def sanitize_text(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _UNSAFE_TEXT_CHARS.sub("", value).strip()[:_TEXT_MAX]


def sanitize_email(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _UNSAFE_EMAIL_CHARS.sub("", value.strip().lower())[:_EMAIL_MAX]


def sanitize_phone(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _UNSAFE_PHONE_CHARS.sub("", value).strip()[:_PHONE_MAX]


def _optional_text(value: Any) -> Optional[str]:
    text = sanitize_text(value)
    return text or None


def _optional_email(field: str, value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    email = sanitize_email(value)
    if not _EMAIL_SHAPE.match(email):
        raise SaleValidationError(field, "invalid email address")
    return email


def _optional_phone(value: Any) -> Optional[str]:
    phone = sanitize_phone(value)
    return phone or None


def _parse_decimal(field: str, value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise SaleValidationError(field, "must be a number")
    text = value.replace(",", ".").strip() if isinstance(value, str) else str(value)
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise SaleValidationError(field, "must be a number") from None
    if not number.is_finite():
        raise SaleValidationError(field, "must be a number")
    return number


def _parse_money(field: str, value: Any, *, minimum: Decimal) -> Decimal:
    number = _parse_decimal(field, value)
    if number < minimum:
        raise SaleValidationError(field, f"must be >= {minimum}")
    if number > _MAX_AMOUNT:
        raise SaleValidationError(field, f"must be <= {_MAX_AMOUNT}")
    try:
        return to_money(number)
    except InvalidOperation:
        raise SaleValidationError(field, "must be a number") from None


def _parse_int(field: str, value: Any, *, minimum: int, maximum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise SaleValidationError(field, "must be an integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _INTEGER.match(value.strip()):
        number = int(value.strip())
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    else:
        raise SaleValidationError(field, "must be an integer")
    if number < minimum:
        raise SaleValidationError(field, f"must be >= {minimum}")
    if maximum is not None and number > maximum:
        raise SaleValidationError(field, f"must be <= {maximum}")
    return number


def _parse_date(field: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise SaleValidationError(field, "must be an ISO date (YYYY-MM-DD)") from None
    raise SaleValidationError(field, "must be an ISO date (YYYY-MM-DD)")


def _parse_enum(field: str, enum_type: Any, value: Any) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise SaleValidationError(field, f"must be one of: {allowed}") from None


def _parse_line(index: int, raw: Mapping[str, Any]) -> SaleLine:
    prefix = f"items[{index}]"

    name = sanitize_text(raw.get("product_name"))
    if not name:
        raise SaleValidationError(f"{prefix}.product_name", "is required")

    quantity = _parse_int(
        f"{prefix}.quantity", raw.get("quantity"), minimum=1, maximum=_MAX_QUANTITY
    )
    unit_price = _parse_money(
        f"{prefix}.unit_price", raw.get("unit_price"), minimum=MIN_UNIT_PRICE
    )

    product_id = raw.get("product_id")
    product_id = str(product_id).strip() if product_id not in (None, "") else None

    return SaleLine(
        product_name=name,
        quantity=quantity,
        unit_price=unit_price,
        product_id=product_id or None,
    )


def _parse_plan(raw_plan: Sequence[Mapping[str, Any]]) -> List[InstallmentPlanEntry]:
    plan: List[InstallmentPlanEntry] = []
    for index, raw in enumerate(raw_plan):
        prefix = f"installments[{index}]"
        amount = _parse_money(f"{prefix}.amount", raw.get("amount"), minimum=MIN_UNIT_PRICE)
        plan.append(
            InstallmentPlanEntry(
                amount=amount,
                due_date=_parse_date(f"{prefix}.due_date", raw.get("due_date")),
            )
        )
    return plan


def parse_sale_form(raw: Mapping[str, Any]) -> SaleDraft:
    """
    Sanitize and validate a sale creation payload.

    Any `total_amount` in the payload is ignored: the total is recomputed from
    the items.

    Raises:
        SaleValidationError: for the first offending field
    """

    customer_name = sanitize_text(raw.get("customer_name"))
    if not customer_name:
        raise SaleValidationError("customer_name", "is required")

    customer_email = _optional_email("customer_email", raw.get("customer_email"))
    customer_phone = _optional_phone(raw.get("customer_phone"))

    raw_items = raw.get("items") or []
    if not isinstance(raw_items, Sequence) or isinstance(raw_items, (str, bytes)) or not raw_items:
        raise SaleValidationError("items", "at least one item is required")
    items = [_parse_line(index, item) for index, item in enumerate(raw_items)]

    payment_method = _parse_enum(
        "payment_method", PaymentMethod, raw.get("payment_method") or PaymentMethod.CASH.value
    )
    payment_status = _parse_enum(
        "payment_status", PaymentStatus, raw.get("payment_status") or PaymentStatus.PENDING.value
    )

    raw_count = raw.get("installments_count")
    installments_count = 1 if raw_count in (None, "") else _parse_int(
        "installments_count", raw_count, minimum=1
    )

    raw_sale_date = raw.get("sale_date")
    sale_date = utc_today() if raw_sale_date in (None, "") else _parse_date("sale_date", raw_sale_date)

    raw_first_due = raw.get("first_due_date")
    first_due_date = None if raw_first_due in (None, "") else _parse_date("first_due_date", raw_first_due)

    plan = _parse_plan(raw.get("installments") or [])
    if plan:
        if len(plan) != installments_count:
            raise SaleValidationError(
                "installments",
                f"expected {installments_count} installments, got {len(plan)}",
            )
        plan_total = sum((entry.amount for entry in plan), Decimal("0"))
        sale_total = compute_total(items)
        if plan_total != sale_total:
            raise SaleValidationError(
                "installments",
                f"installment amounts sum to {plan_total}, sale total is {sale_total}",
            )

    return SaleDraft(
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        items=items,
        payment_method=payment_method,
        payment_status=payment_status,
        installments_count=installments_count,
        sale_date=sale_date,
        notes=_optional_text(raw.get("notes")),
        first_due_date=first_due_date,
        installment_plan=plan,
    )


def parse_sale_update(raw: Mapping[str, Any]) -> SaleUpdate:
    """
    Sanitize and validate a header update payload.

    Only header fields are read; anything else in the payload (items, total,
    installments) is ignored.

    Raises:
        SaleValidationError: for the first offending field
    """

    customer_name: Optional[str] = None
    if raw.get("customer_name") is not None:
        customer_name = sanitize_text(raw["customer_name"])
        if not customer_name:
            raise SaleValidationError("customer_name", "cannot be empty")

    customer_email: Optional[str] = None
    if "customer_email" in raw and raw["customer_email"] is not None:
        # An empty string clears the email.
        customer_email = _optional_email("customer_email", raw["customer_email"]) or ""

    customer_phone: Optional[str] = None
    if "customer_phone" in raw and raw["customer_phone"] is not None:
        customer_phone = sanitize_phone(raw["customer_phone"])

    notes: Optional[str] = None
    if "notes" in raw and raw["notes"] is not None:
        notes = sanitize_text(raw["notes"])

    payment_method = None
    if raw.get("payment_method") is not None:
        payment_method = _parse_enum("payment_method", PaymentMethod, raw["payment_method"])

    payment_status = None
    if raw.get("payment_status") is not None:
        payment_status = _parse_enum("payment_status", PaymentStatus, raw["payment_status"])

    sale_date = None
    if raw.get("sale_date") is not None:
        sale_date = _parse_date("sale_date", raw["sale_date"])

    return SaleUpdate(
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        payment_method=payment_method,
        payment_status=payment_status,
        sale_date=sale_date,
        notes=notes,
    )


__all__ = [
    "SaleValidationError",
    "parse_sale_form",
    "parse_sale_update",
    "sanitize_email",
    "sanitize_phone",
    "sanitize_text",
]
