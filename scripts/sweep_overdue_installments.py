#!/usr/bin/env python3
"""
Overdue Installment Sweep

Marks every pending installment whose due date has passed as overdue. The API
already does this whenever the installment list is loaded; this script lets a
scheduler (cron) run the same sweep without anyone opening the admin screen.

Usage:
    python sweep_overdue_installments.py
    python sweep_overdue_installments.py --dry-run
    python sweep_overdue_installments.py --date 2025-06-30
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.time import utc_today
from repositories.installment_repository import list_installments
from services.overdue_service import find_overdue, sweep_overdue


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Mark pending installments past their due date as overdue"
    )

    parser.add_argument(
        "--date",
        "-d",
        type=date.fromisoformat,
        help="Reference date (YYYY-MM-DD); defaults to today (UTC)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only list what would be marked overdue"
    )

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        installments = list_installments()
        report = sweep_overdue(installments, args.date, dry_run=args.dry_run)

        print("=" * 60)
        print("OVERDUE SWEEP" + (" (dry run)" if args.dry_run else ""))
        print("=" * 60)
        print(f"Installments inspected: {len(installments)}")
        print(f"Marked overdue:         {len(report.swept)}")
        print(f"Failed:                 {len(report.failed)}")

        if args.dry_run:
            for inst in find_overdue(installments, args.date or utc_today()):
                print(f"  sale {inst.sale_id} #{inst.installment_number}: {inst.amount} due {inst.due_date}")

        print("=" * 60)
        return 1 if report.failed else 0

    except KeyboardInterrupt:
        print("\n\nSweep interrupted by user")
        return 130

    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
