"""
Domain: Installments (parcelas) of a sale.

Rules:
- A schedule of N installments is numbered 1..N and its amounts sum exactly
  to the sale total. Each amount is the total divided by N rounded down to
  the cent; the remainder is added to the last installment.
- Due dates advance one calendar month per installment from the first due
  date.
- Status transitions:
    pending -> paid      (stamps paid_date, optional payment_method)
    paid    -> pending   (clears paid_date and payment_method)
    pending -> overdue   (time-driven, see services.overdue_service)
    overdue -> paid
    overdue -> pending   (explicit status change only, never by the sweeper)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import List, Optional

from .time import add_months, require_utc_timestamp

_CENT = Decimal("0.01")


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


@dataclass(frozen=True, slots=True)
class ScheduledInstallment:
    """One entry of a computed schedule, not yet persisted."""

    installment_number: int
    amount: Decimal
    due_date: date


@dataclass(frozen=True, slots=True)
class Installment:
    """Persisted installment of a sale."""

    installment_id: str
    sale_id: str
    installment_number: int
    amount: Decimal
    due_date: date
    status: InstallmentStatus = InstallmentStatus.PENDING
    paid_date: Optional[date] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.installment_number < 1:
            raise ValueError("installment_number must be >= 1")
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    def is_overdue_on(self, today: date) -> bool:
        """True if this installment should be swept to overdue on `today`."""

        return self.status is InstallmentStatus.PENDING and self.due_date < today


def build_schedule(total: Decimal, count: int, first_due_date: date) -> List[ScheduledInstallment]:
    """
    Split `total` into `count` monthly installments.

    Args:
        total: Sale total (already in cents)
        count: Number of installments (>= 1)
        first_due_date: Due date of installment 1

    Returns:
        List of ScheduledInstallment whose amounts sum exactly to `total`

    Example:
        build_schedule(Decimal("100.00"), 3, date(2025, 1, 10))
        # 33.33 (2025-01-10), 33.33 (2025-02-10), 33.34 (2025-03-10)
    """

    if count < 1:
        raise ValueError("count must be >= 1")
    if total < 0:
        raise ValueError("total must be >= 0")

    share = (total / count).quantize(_CENT, rounding=ROUND_DOWN)
    remainder = total - share * count

    schedule: List[ScheduledInstallment] = []
    for index in range(count):
        amount = share + remainder if index == count - 1 else share
        schedule.append(
            ScheduledInstallment(
                installment_number=index + 1,
                amount=amount,
                due_date=add_months(first_due_date, index),
            )
        )
    return schedule


def default_first_due_date(sale_date: date) -> date:
    """First installment falls due one month after the sale."""

    return add_months(sale_date, 1)
