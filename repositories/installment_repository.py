"""
Installment repository (persistence).

Persistence operations for the Installment domain entity. Status rules and
overdue derivation live in the services; this module only reads and writes
rows.
"""

from __future__ import annotations

from datetime import date
from typing import Any, List, Mapping, Optional, Sequence
from uuid import uuid4

from domain.installment import Installment, InstallmentStatus, ScheduledInstallment
from domain.time import utc_now
from repositories import client as db
from repositories.rows import (
    execute,
    parse_date,
    parse_decimal,
    parse_optional_date,
    parse_optional_utc_datetime,
    to_iso_utc,
)

# Supabase table name for installments.
# Keep this aligned with your database schema.
_INSTALLMENTS_TABLE: str = "installments"


def row_to_installment(row: Mapping[str, Any]) -> Installment:
    """Convert a Supabase row into an Installment."""

    return Installment(
        installment_id=str(row["id"]),
        sale_id=str(row["sale_id"]),
        installment_number=int(row["installment_number"]),
        amount=parse_decimal(row["amount"]),
        due_date=parse_date(row["due_date"]),
        status=InstallmentStatus(str(row.get("status") or InstallmentStatus.PENDING.value)),
        paid_date=parse_optional_date(row.get("paid_date")),
        payment_method=row.get("payment_method"),
        notes=row.get("notes"),
        created_at=parse_optional_utc_datetime(row.get("created_at")),
    )


def insert_installments(sale_id: str, schedule: Sequence[ScheduledInstallment]) -> List[Installment]:
    """
    Insert the installments of a sale in a single request.

    All rows start as pending with no paid date or payment method.

    Returns:
        The persisted installments, ordered by installment number
    """

    now = to_iso_utc(utc_now(), name="created_at")
    payload: List[dict[str, Any]] = [
        {
            "id": str(uuid4()),
            "sale_id": sale_id,
            "installment_number": entry.installment_number,
            "amount": str(entry.amount),
            "due_date": entry.due_date.isoformat(),
            "status": InstallmentStatus.PENDING.value,
            "paid_date": None,
            "payment_method": None,
            "created_at": now,
        }
        for entry in schedule
    ]

    rows = execute(db.get_client().table(_INSTALLMENTS_TABLE).insert(payload), "insert installments")
    installments = [row_to_installment(row) for row in rows] if rows else [
        row_to_installment(row) for row in payload
    ]
    return sorted(installments, key=lambda inst: inst.installment_number)


def list_installments() -> List[Installment]:
    """All installments ordered by due date (earliest first)."""

    rows = execute(
        db.get_client().table(_INSTALLMENTS_TABLE).select("*").order("due_date"),
        "list installments",
    )
    return [row_to_installment(row) for row in rows]


def update_installment_status(
    installment_id: str,
    status: InstallmentStatus,
    paid_date: Optional[date],
    payment_method: Optional[str],
    *,
    keep_payment_method: bool = False,
) -> Optional[Installment]:
    """
    Write the status columns of an installment.

    With keep_payment_method the stored payment method is left untouched.

    Returns:
        The updated Installment, or None if no row has this id
    """

    payload: dict[str, Any] = {
        "status": status.value,
        "paid_date": paid_date.isoformat() if paid_date is not None else None,
    }
    if not keep_payment_method:
        payload["payment_method"] = payment_method
    rows = execute(
        db.get_client().table(_INSTALLMENTS_TABLE).update(payload).eq("id", installment_id),
        "update installment status",
    )
    return row_to_installment(rows[0]) if rows else None


def mark_installment_overdue(installment_id: str) -> bool:
    """
    Move a pending installment to overdue.

    The update only matches while the row is still pending, so a payment
    recorded after the installment was read is never overwritten.

    Returns:
        True if the row was pending and is now overdue
    """

    rows = execute(
        db.get_client()
        .table(_INSTALLMENTS_TABLE)
        .update({"status": InstallmentStatus.OVERDUE.value})
        .eq("id", installment_id)
        .eq("status", InstallmentStatus.PENDING.value),
        "mark installment overdue",
    )
    return len(rows) > 0


def delete_installments_by_sale(sale_id: str) -> None:
    execute(
        db.get_client().table(_INSTALLMENTS_TABLE).delete().eq("sale_id", sale_id),
        "delete sale installments",
    )


__all__ = [
    "delete_installments_by_sale",
    "insert_installments",
    "list_installments",
    "mark_installment_overdue",
    "row_to_installment",
    "update_installment_status",
]
