"""
Sale service: recording, editing and deleting sales.

Handles:
- All-or-nothing sale creation across sales, sale_items, product stock and
  installments, with compensation when a later step fails
- Header-only updates
- Deletion with stock restore

Creation runs these steps in order (SaleWriteState):

    VALIDATING_STOCK -> WRITING_HEADER -> WRITING_ITEMS
        -> DECREMENTING_STOCK -> WRITING_INSTALLMENTS -> COMMITTED

Stock is validated before anything is written. The header is written before
the items because the items reference its id. Stock is decremented before
installments are written: an installment failure can be fully compensated
(restore + delete), while a half-applied decrement is the narrowest window
that needs special care.

Any failure after the header write ends in ROLLED_BACK (every completed step
undone) or, if an undo step itself fails, PARTIAL_STATE. PARTIAL_STATE is
logged at ERROR level and its error message says explicitly that the data may
be inconsistent; it must not be retried automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from domain.installment import Installment, default_first_due_date
from domain.sale import Sale, SaleDraft, SaleLine, SaleUpdate
from domain.sale_form import SaleValidationError, parse_sale_form, parse_sale_update
from repositories import sale_repository
from repositories.installment_repository import insert_installments
from services.installment_service import plan_from_entries, schedule_installments
from services.results import OperationResult
from services.stock_service import decrement_stock, restore_stock
from services.stock_validation_service import validate_stock

logger = logging.getLogger(__name__)


class SaleWriteState(str, Enum):
    VALIDATING_STOCK = "validating_stock"
    WRITING_HEADER = "writing_header"
    WRITING_ITEMS = "writing_items"
    DECREMENTING_STOCK = "decrementing_stock"
    WRITING_INSTALLMENTS = "writing_installments"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    PARTIAL_STATE = "partial_state"


@dataclass(frozen=True, slots=True)
class CreateSaleResult:
    """
    Result of a sale creation attempt.

    sale: The committed Sale (with items and installments), None on failure
    error: Message to show the user, None on success
    state: Final SaleWriteState (COMMITTED, ROLLED_BACK, PARTIAL_STATE, or the
        step that rejected the sale before anything was written)
    failed_step: Step that failed, None on success
    """

    sale: Optional[Sale]
    error: Optional[str]
    state: SaleWriteState
    failed_step: Optional[SaleWriteState] = None

    @property
    def success(self) -> bool:
        return self.sale is not None and self.error is None

    @property
    def is_partial_state(self) -> bool:
        return self.state is SaleWriteState.PARTIAL_STATE


def _rejected(step: SaleWriteState, error: str) -> CreateSaleResult:
    """Failure before anything was written: nothing to undo."""

    return CreateSaleResult(sale=None, error=error, state=step, failed_step=step)


def _compensate(
    sale_id: str,
    restore_lines: Sequence[SaleLine],
    failed_step: SaleWriteState,
    reason: str,
) -> CreateSaleResult:
    """
    Undo a partially written sale: restore stock, then delete the rows.

    Returns ROLLED_BACK when every undo step succeeds, PARTIAL_STATE otherwise.
    """

    problems: List[str] = []

    if restore_lines:
        restored = restore_stock(restore_lines)
        if not restored.success:
            problems.append(f"stock restore failed ({restored.error})")

    try:
        sale_repository.delete_sale(sale_id)
    except Exception as e:
        problems.append(f"sale {sale_id} could not be deleted ({e})")

    if problems:
        logger.error(
            "Unrecoverable partial state for sale %s after failure in %s: %s; undo problems: %s",
            sale_id,
            failed_step.value,
            reason,
            "; ".join(problems),
        )
        return CreateSaleResult(
            sale=None,
            error=(
                f"{reason}. Rollback did not complete and data may be inconsistent: "
                f"{'; '.join(problems)}. Do not resubmit before checking sale {sale_id} "
                f"and product stock."
            ),
            state=SaleWriteState.PARTIAL_STATE,
            failed_step=failed_step,
        )

    logger.warning("Sale %s rolled back after failure in %s: %s", sale_id, failed_step.value, reason)
    return CreateSaleResult(
        sale=None,
        error=reason,
        state=SaleWriteState.ROLLED_BACK,
        failed_step=failed_step,
    )


def _write_installments(sale: Sale, draft: SaleDraft) -> List[Installment]:
    if draft.installment_plan:
        return insert_installments(sale.sale_id, plan_from_entries(draft.installment_plan))

    first_due = draft.first_due_date or default_first_due_date(draft.sale_date)
    count = max(draft.installments_count, 1)
    return schedule_installments(sale.sale_id, sale.total_amount, count, first_due)


def create_sale(data: SaleDraft | Mapping[str, Any]) -> CreateSaleResult:
    """
    Record a sale: header, items, stock decrement and installment schedule.

    Either every step is applied or, on failure, every completed step is
    undone (see module docstring for the ordering and PARTIAL_STATE).

    Args:
        data: A SaleDraft, or a raw payload that is sanitized and validated
            with domain.sale_form.parse_sale_form

    Returns:
        CreateSaleResult; `error` is suitable for showing to the user

    Example:
        result = create_sale({
            "customer_name": "Ana",
            "items": [{"product_id": "p1", "product_name": "Ring", "quantity": 2, "unit_price": "150.00"}],
            "installments_count": 3,
        })
        if result.success:
            print(result.sale.sale_id, [i.amount for i in result.sale.installments])
        else:
            print(result.error)
    """

    step = SaleWriteState.VALIDATING_STOCK

    if isinstance(data, SaleDraft):
        draft = data
    else:
        try:
            draft = parse_sale_form(data)
        except SaleValidationError as e:
            logger.warning("Sale rejected by validation: %s", e)
            return _rejected(step, f"Invalid sale data: {e}")

    if not draft.items:
        return _rejected(step, "Invalid sale data: items: at least one item is required")

    # 1. Stock check (catalog lines only; off-catalog lines move no stock)
    catalog_lines = [line for line in draft.items if line.is_catalog_item]
    if catalog_lines:
        validation = validate_stock(catalog_lines)
        if not validation.is_valid:
            return _rejected(step, f"Insufficient stock: {validation.summary()}")

    # 2. Header
    step = SaleWriteState.WRITING_HEADER
    try:
        header = sale_repository.insert_sale_header(draft)
    except Exception as e:
        logger.warning("Sale header write failed: %s", e)
        return _rejected(step, str(e))

    sale_id = header.sale_id

    # 3. Items
    step = SaleWriteState.WRITING_ITEMS
    try:
        items = sale_repository.insert_sale_items(sale_id, draft.items)
    except Exception as e:
        return _compensate(sale_id, [], step, str(e))

    # 4. Stock decrement
    step = SaleWriteState.DECREMENTING_STOCK
    decremented = decrement_stock(catalog_lines)
    if not decremented.success:
        return _compensate(
            sale_id,
            decremented.affected_items,
            step,
            f"Failed to update stock: {decremented.error}",
        )

    # 5. Installments
    installments: List[Installment] = []
    if draft.has_installment_plan:
        step = SaleWriteState.WRITING_INSTALLMENTS
        try:
            installments = _write_installments(header, draft)
        except Exception as e:
            return _compensate(sale_id, decremented.affected_items, step, str(e))

    # 6. Committed
    sale = replace(header, items=items, installments=installments)
    logger.info(
        "Sale %s committed: total %s, %d items, %d installments",
        sale_id,
        sale.total_amount,
        len(items),
        len(installments),
    )
    return CreateSaleResult(sale=sale, error=None, state=SaleWriteState.COMMITTED)


def get_sale(sale_id: str) -> Optional[Sale]:
    """
    Fetch a sale with items and installments.

    Raises:
        RuntimeError: on storage errors
    """

    return sale_repository.get_sale_by_id(sale_id)


def list_sales() -> List[Sale]:
    """
    All sales, newest first, with items and installments.

    Raises:
        RuntimeError: on storage errors
    """

    return sale_repository.list_sales()


def _update_columns(update: SaleUpdate) -> Dict[str, Any]:
    columns: Dict[str, Any] = {}
    if update.customer_name is not None:
        columns["customer_name"] = update.customer_name
    if update.customer_email is not None:
        columns["customer_email"] = update.customer_email or None
    if update.customer_phone is not None:
        columns["customer_phone"] = update.customer_phone or None
    if update.payment_method is not None:
        columns["payment_method"] = update.payment_method.value
    if update.payment_status is not None:
        columns["payment_status"] = update.payment_status.value
    if update.sale_date is not None:
        columns["sale_date"] = update.sale_date.isoformat()
    if update.notes is not None:
        columns["notes"] = update.notes or None
    return columns


def update_sale(sale_id: str, data: SaleUpdate | Mapping[str, Any]) -> OperationResult:
    """
    Update header fields of a sale.

    Only customer info, payment method/status, sale date and notes change.
    Items, stock, installments and total_amount are never touched.

    Returns:
        OperationResult
    """

    if isinstance(data, SaleUpdate):
        update = data
    else:
        try:
            update = parse_sale_update(data)
        except SaleValidationError as e:
            return OperationResult.failed(f"Invalid sale data: {e}")

    columns = _update_columns(update)
    if not columns:
        return OperationResult.ok()

    try:
        found = sale_repository.update_sale_header(sale_id, columns)
    except Exception as e:
        logger.warning("Sale %s update failed: %s", sale_id, e)
        return OperationResult.failed(str(e))

    if not found:
        return OperationResult.failed(f"Sale not found: {sale_id}")

    logger.info("Sale %s updated: %s", sale_id, ", ".join(sorted(columns)))
    return OperationResult.ok()


def _settle_failed_delete(sale: Sale, restock: bool, reason: str) -> OperationResult:
    """
    Handle a delete that stopped part way.

    Items are removed first. While they are all still there nothing was
    removed and the delete can be retried as is. Once they are gone a retry no
    longer sees them, so their stock is given back here from the sale read
    before the delete.
    """

    problems: List[str] = [f"sale {sale.sale_id} may be only partly deleted ({reason})"]
    lines: List[SaleLine] = []
    try:
        remaining = sale_repository.get_sale_by_id(sale.sale_id)
    except Exception as e:
        problems.append(f"the sale could not be re-read ({e})")
    else:
        if remaining is not None and len(remaining.items) == len(sale.items):
            return OperationResult.failed(reason)
        lines = sale.catalog_lines() if restock else []

    stock_note = "Stock was left as is."
    if lines:
        restored = restore_stock(lines)
        if restored.success:
            stock_note = "Stock held by its items was given back."
        else:
            problems.append(f"stock restore failed ({restored.error})")

    logger.error("Unrecoverable partial state on delete: %s", "; ".join(problems))
    return OperationResult.failed(
        f"Failed to delete sale {sale.sale_id}; data may be inconsistent: {'; '.join(problems)}. "
        f"{stock_note}"
    )


def delete_sale(sale_id: str, *, restock: bool = True) -> OperationResult:
    """
    Delete a sale with its items and installments.

    By default the stock taken by the sale's catalog items is given back, the
    same way a failed creation is compensated. Pass restock=False to keep the
    stock as it is (e.g. goods that left the shop anyway).

    Returns:
        OperationResult; a failed restore after the rows were deleted is
        reported as a partial state
    """

    try:
        sale = sale_repository.get_sale_by_id(sale_id)
    except Exception as e:
        return OperationResult.failed(str(e))

    if sale is None:
        return OperationResult.failed(f"Sale not found: {sale_id}")

    try:
        sale_repository.delete_sale(sale_id)
    except Exception as e:
        logger.warning("Sale %s delete failed: %s", sale_id, e)
        return _settle_failed_delete(sale, restock, str(e))

    lines = sale.catalog_lines() if restock else []
    if lines:
        restored = restore_stock(lines)
        if not restored.success:
            logger.error(
                "Unrecoverable partial state: sale %s deleted but stock restore failed: %s",
                sale_id,
                restored.error,
            )
            return OperationResult.failed(
                f"Sale {sale_id} was deleted but its stock could not be fully restored "
                f"({restored.error}); restored products: {', '.join(restored.affected) or 'none'}. "
                f"Data may be inconsistent."
            )

    logger.info("Sale %s deleted (%d stock lines restored)", sale_id, len(lines))
    return OperationResult.ok()


__all__ = [
    "CreateSaleResult",
    "SaleWriteState",
    "create_sale",
    "delete_sale",
    "get_sale",
    "list_sales",
    "update_sale",
]
