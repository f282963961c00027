"""
Sale repository (persistence).

This module provides *only* persistence operations for the Sale aggregate:
the sales header table and its sale_items. It does not enforce business
rules (stock, totals, compensation); those live in services.sale_service.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence
from uuid import uuid4

from domain.sale import (
    PaymentMethod,
    PaymentStatus,
    Sale,
    SaleDraft,
    SaleItem,
    SaleLine,
)
from domain.time import utc_now
from repositories import client as db
from repositories.installment_repository import delete_installments_by_sale, row_to_installment
from repositories.rows import (
    execute,
    parse_date,
    parse_decimal,
    parse_optional_utc_datetime,
    to_iso_utc,
)

# Supabase table names for sales and their items.
# Keep these aligned with your database schema.
_SALES_TABLE: str = "sales"
_SALE_ITEMS_TABLE: str = "sale_items"

# Header plus embedded children (PostgREST resource embedding via the
# sale_id foreign keys).
_SALE_WITH_CHILDREN: str = "*, sale_items(*), installments(*)"


def _row_to_item(row: Mapping[str, Any]) -> SaleItem:
    """Convert a Supabase row into a SaleItem."""

    product_id = row.get("product_id")
    return SaleItem(
        item_id=str(row["id"]),
        sale_id=str(row["sale_id"]),
        product_id=str(product_id) if product_id else None,
        product_name=str(row["product_name"]),
        quantity=int(row["quantity"]),
        unit_price=parse_decimal(row["unit_price"]),
        created_at=parse_optional_utc_datetime(row.get("created_at")),
    )


def _row_to_sale(row: Mapping[str, Any]) -> Sale:
    """Convert a Supabase row (optionally with embedded children) into a Sale."""

    items = [_row_to_item(item) for item in row.get("sale_items") or []]
    installments = sorted(
        (row_to_installment(inst) for inst in row.get("installments") or []),
        key=lambda inst: inst.installment_number,
    )
    return Sale(
        sale_id=str(row["id"]),
        customer_name=str(row["customer_name"]),
        customer_email=row.get("customer_email"),
        customer_phone=row.get("customer_phone"),
        total_amount=parse_decimal(row["total_amount"]),
        payment_method=PaymentMethod(str(row["payment_method"])),
        payment_status=PaymentStatus(str(row["payment_status"])),
        installments_count=int(row.get("installments_count") or 1),
        sale_date=parse_date(row["sale_date"]),
        notes=row.get("notes"),
        created_at=parse_optional_utc_datetime(row.get("created_at")),
        updated_at=parse_optional_utc_datetime(row.get("updated_at")),
        items=items,
        installments=installments,
    )


def insert_sale_header(draft: SaleDraft) -> Sale:
    """
    Insert the sales header row for a draft.

    total_amount is recomputed from the draft's items.

    Returns:
        Sale (without items or installments)
    """

    sale_id = str(uuid4())
    now = to_iso_utc(utc_now(), name="created_at")

    payload: dict[str, Any] = {
        "id": sale_id,
        "customer_name": draft.customer_name,
        "customer_email": draft.customer_email,
        "customer_phone": draft.customer_phone,
        "total_amount": str(draft.total_amount),
        "payment_method": draft.payment_method.value,
        "payment_status": draft.payment_status.value,
        "installments_count": draft.installments_count,
        "sale_date": draft.sale_date.isoformat(),
        "notes": draft.notes,
        "created_at": now,
        "updated_at": now,
    }

    rows = execute(db.get_client().table(_SALES_TABLE).insert(payload), "insert sale")
    return _row_to_sale(rows[0] if rows else payload)


def insert_sale_items(sale_id: str, lines: Sequence[SaleLine]) -> List[SaleItem]:
    """
    Insert all line items of a sale in a single request.

    Returns:
        The persisted SaleItems, in input order
    """

    now = to_iso_utc(utc_now(), name="created_at")
    payload: List[dict[str, Any]] = [
        {
            "id": str(uuid4()),
            "sale_id": sale_id,
            "product_id": line.product_id,
            "product_name": line.product_name,
            "quantity": line.quantity,
            "unit_price": str(line.unit_price),
            "total_price": str(line.total_price),
            "created_at": now,
        }
        for line in lines
    ]

    rows = execute(db.get_client().table(_SALE_ITEMS_TABLE).insert(payload), "insert sale items")
    return [_row_to_item(row) for row in (rows or payload)]


def get_sale_by_id(sale_id: str) -> Optional[Sale]:
    """
    Fetch a sale with its items and installments.

    Returns:
        Sale or None if not found
    """

    rows = execute(
        db.get_client().table(_SALES_TABLE).select(_SALE_WITH_CHILDREN).eq("id", sale_id).limit(1),
        "fetch sale",
    )
    return _row_to_sale(rows[0]) if rows else None


def list_sales() -> List[Sale]:
    """All sales with items and installments, newest first."""

    rows = execute(
        db.get_client().table(_SALES_TABLE).select(_SALE_WITH_CHILDREN).order("created_at", desc=True),
        "list sales",
    )
    return [_row_to_sale(row) for row in rows]


def update_sale_header(sale_id: str, changes: Mapping[str, Any]) -> bool:
    """
    Apply column changes to a sales header row.

    Returns:
        True if a row was updated, False if no sale has this id
    """

    payload = dict(changes)
    payload["updated_at"] = to_iso_utc(utc_now(), name="updated_at")
    rows = execute(
        db.get_client().table(_SALES_TABLE).update(payload).eq("id", sale_id),
        "update sale",
    )
    return len(rows) > 0


def delete_sale(sale_id: str) -> bool:
    """
    Delete a sale together with its items and installments.

    Children are deleted explicitly before the header so the result does not
    depend on ON DELETE CASCADE being configured.

    Returns:
        True if the header row existed and was deleted
    """

    execute(
        db.get_client().table(_SALE_ITEMS_TABLE).delete().eq("sale_id", sale_id),
        "delete sale items",
    )
    delete_installments_by_sale(sale_id)
    rows = execute(
        db.get_client().table(_SALES_TABLE).delete().eq("id", sale_id),
        "delete sale",
    )
    return len(rows) > 0


__all__ = [
    "delete_sale",
    "get_sale_by_id",
    "insert_sale_header",
    "insert_sale_items",
    "list_sales",
    "update_sale_header",
]
