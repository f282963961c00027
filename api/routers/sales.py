"""
Sales API Endpoints.

Endpoints for recording, listing, editing and deleting sales.
"""

from typing import List

from fastapi import APIRouter, HTTPException

from api.models import (
    CreateSaleResponse,
    OperationResponse,
    SaleCreateRequest,
    SaleResponse,
    SaleUpdateRequest,
)
from services.sale_service import create_sale, delete_sale, get_sale, list_sales, update_sale

router = APIRouter()


@router.post(
    "/sales",
    response_model=CreateSaleResponse,
    summary="Record Sale",
    description="Record a sale with its items, stock decrement and installment schedule (all-or-nothing)."
)
def record_sale(request: SaleCreateRequest):
    """
    Record a sale.

    **Process:**
    1. Sanitizes and validates the payload (first offending field is reported)
    2. Checks stock for every catalog item (all problems are reported)
    3. Writes the sale, its items, decrements stock and writes installments
    4. If any step fails, previous steps are undone

    The total is always recomputed from the items.

    **Failure response (insufficient stock):**
    ```json
    {
      "success": false,
      "sale": null,
      "error": "Insufficient stock: Insufficient stock for Silver ring. Requested: 3, available: 2",
      "state": "validating_stock"
    }
    ```
    """
    try:
        result = create_sale(request.model_dump(mode="json"))
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to record sale: {str(e)}"
        )

    return CreateSaleResponse(
        success=result.success,
        sale=SaleResponse.from_domain(result.sale) if result.sale else None,
        error=result.error,
        state=result.state.value,
    )


@router.get(
    "/sales",
    response_model=List[SaleResponse],
    summary="List Sales",
    description="All sales, newest first, with items and installments."
)
def get_sales():
    try:
        return [SaleResponse.from_domain(sale) for sale in list_sales()]
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list sales: {str(e)}"
        )


@router.get(
    "/sales/{sale_id}",
    response_model=SaleResponse,
    summary="Get Sale"
)
def get_sale_detail(sale_id: str):
    try:
        sale = get_sale(sale_id)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to fetch sale: {str(e)}"
        )

    if sale is None:
        raise HTTPException(
            status_code=404,
            detail=f"Sale not found: {sale_id}"
        )
    return SaleResponse.from_domain(sale)


@router.patch(
    "/sales/{sale_id}",
    response_model=OperationResponse,
    summary="Update Sale",
    description="Update header fields only. Items, stock, installments and total are not changed."
)
def edit_sale(sale_id: str, request: SaleUpdateRequest):
    result = update_sale(sale_id, request.model_dump(mode="json", exclude_unset=True))
    return OperationResponse(success=result.success, error=result.error)


@router.delete(
    "/sales/{sale_id}",
    response_model=OperationResponse,
    summary="Delete Sale",
    description="Delete a sale with its items and installments and give its stock back."
)
def remove_sale(sale_id: str, restock: bool = True):
    result = delete_sale(sale_id, restock=restock)
    return OperationResponse(success=result.success, error=result.error)
