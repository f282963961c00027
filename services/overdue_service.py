"""
Overdue sweep for installments.

Every time the installment list is loaded, pending installments whose due
date has passed are moved to overdue. The sweep is a batch of independent
single-row updates: a failing row is logged and skipped, and nothing is
raised to the caller. Overdue rows are never moved back to pending here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import List, Optional, Sequence

from domain.installment import Installment, InstallmentStatus
from domain.time import utc_today
from repositories.installment_repository import list_installments as fetch_installments
from repositories.installment_repository import mark_installment_overdue

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SweepReport:
    """Which installments the sweep moved to overdue and which it could not."""

    swept: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def find_overdue(installments: Sequence[Installment], today: date) -> List[Installment]:
    """Pending installments due strictly before `today`."""

    return [inst for inst in installments if inst.is_overdue_on(today)]


def sweep_overdue(
    installments: Sequence[Installment],
    today: Optional[date] = None,
    *,
    dry_run: bool = False,
) -> SweepReport:
    """
    Move every pending installment due before `today` to overdue.

    Rows that are no longer pending when written (paid in the meantime) are
    left alone and reported in neither list.

    Args:
        installments: Installments to inspect
        today: Reference date (defaults to the current UTC date)
        dry_run: Report what would be swept without writing

    Returns:
        SweepReport (ids swept and ids whose update failed)
    """

    today = today or utc_today()
    swept: List[str] = []
    failed: List[str] = []

    for inst in find_overdue(installments, today):
        if dry_run:
            swept.append(inst.installment_id)
            continue
        try:
            moved = mark_installment_overdue(inst.installment_id)
        except RuntimeError as e:
            failed.append(inst.installment_id)
            logger.warning("Could not mark installment %s overdue: %s", inst.installment_id, e)
            continue
        if moved:
            swept.append(inst.installment_id)
        else:
            logger.info("Installment %s changed since it was read; left as is", inst.installment_id)

    if swept or failed:
        logger.info("Overdue sweep on %s: %d swept, %d failed", today, len(swept), len(failed))

    return SweepReport(swept=swept, failed=failed)


def list_installments(today: Optional[date] = None) -> List[Installment]:
    """
    Load all installments (earliest due first), sweeping overdue ones.

    The returned list reflects the rows the sweep moved to overdue.

    Raises:
        RuntimeError: if the installments cannot be loaded
    """

    installments = fetch_installments()
    report = sweep_overdue(installments, today)

    swept = set(report.swept)
    return [
        replace(inst, status=InstallmentStatus.OVERDUE) if inst.installment_id in swept else inst
        for inst in installments
    ]


__all__ = [
    "SweepReport",
    "find_overdue",
    "list_installments",
    "sweep_overdue",
]
