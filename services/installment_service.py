"""
Installment service.

Expands a sale's payment plan into dated installment rows and applies status
changes to individual installments.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence

from domain.installment import (
    Installment,
    InstallmentStatus,
    ScheduledInstallment,
    build_schedule,
)
from domain.sale import InstallmentPlanEntry
from domain.time import utc_today
from repositories.installment_repository import insert_installments, update_installment_status
from services.results import OperationResult

logger = logging.getLogger(__name__)


def plan_from_entries(entries: Sequence[InstallmentPlanEntry]) -> List[ScheduledInstallment]:
    """Number caller-supplied plan entries 1..N, keeping their amounts and dates."""

    return [
        ScheduledInstallment(installment_number=index + 1, amount=entry.amount, due_date=entry.due_date)
        for index, entry in enumerate(entries)
    ]


def schedule_installments(
    sale_id: str,
    total_amount: Decimal,
    count: int,
    first_due_date: date,
) -> List[Installment]:
    """
    Build and persist the installment schedule of a sale.

    Args:
        sale_id: Owning sale
        total_amount: Sale total to split
        count: Number of installments (>= 1)
        first_due_date: Due date of installment 1; later ones are monthly

    Returns:
        The persisted installments, all pending

    Raises:
        RuntimeError: if the rows cannot be written
    """

    schedule = build_schedule(total_amount, count, first_due_date)
    return insert_installments(sale_id, schedule)


def set_installment_status(
    installment_id: str,
    status: InstallmentStatus | str,
    payment_method: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> OperationResult:
    """
    Change the status of one installment.

    Setting `paid` stamps today's date and records the payment method when
    one is given (a method stored earlier is kept otherwise); any other
    status clears both. Setting the same status twice leaves the row in
    the same state.

    Args:
        installment_id: Installment to update
        status: InstallmentStatus or its string value
        payment_method: Recorded only when status is paid; None keeps the
            stored method
        today: Override for the paid date (tests, back-dated entries)

    Returns:
        OperationResult
    """

    try:
        new_status = InstallmentStatus(status)
    except ValueError:
        allowed = ", ".join(member.value for member in InstallmentStatus)
        return OperationResult.failed(f"Invalid installment status '{status}'. Allowed: {allowed}")

    if new_status is InstallmentStatus.PAID:
        paid_date: Optional[date] = today or utc_today()
        method = payment_method or None
    else:
        paid_date = None
        method = None

    try:
        updated = update_installment_status(
            installment_id,
            new_status,
            paid_date,
            method,
            keep_payment_method=new_status is InstallmentStatus.PAID and method is None,
        )
    except RuntimeError as e:
        logger.warning("Installment %s status update failed: %s", installment_id, e)
        return OperationResult.failed(str(e))

    if updated is None:
        return OperationResult.failed(f"Installment not found: {installment_id}")

    logger.info("Installment %s set to %s", installment_id, new_status.value)
    return OperationResult.ok()


__all__ = [
    "plan_from_entries",
    "schedule_installments",
    "set_installment_status",
]
