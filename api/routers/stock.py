"""
Stock API Endpoints.

Pre-submit stock availability check used by the sale form.
"""

from decimal import Decimal

from fastapi import APIRouter, HTTPException

from api.models import StockValidationRequest, StockValidationResponse
from domain.sale import SaleLine
from services.stock_validation_service import validate_stock

router = APIRouter()


@router.post(
    "/stock/validate",
    response_model=StockValidationResponse,
    summary="Validate Stock",
    description="Check that every requested item exists, is active and has enough stock. Read-only."
)
def check_stock(request: StockValidationRequest):
    """
    Validate stock for a set of items.

    Items without a product_id are reported as violations. Every failing item
    is listed, not only the first one.
    """
    lines = [
        SaleLine(
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=Decimal("0.01"),
            product_id=item.product_id or None,
        )
        for item in request.items
    ]

    try:
        result = validate_stock(lines)
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to validate stock: {str(e)}"
        )

    return StockValidationResponse.from_domain(result)
