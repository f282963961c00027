"""
Installments API Endpoints.

Listing installments (which sweeps overdue ones first) and changing the status
of a single installment.
"""

from typing import List

from fastapi import APIRouter, HTTPException

from api.models import InstallmentResponse, InstallmentStatusRequest, OperationResponse
from services.installment_service import set_installment_status
from services.overdue_service import list_installments

router = APIRouter()


@router.get(
    "/installments",
    response_model=List[InstallmentResponse],
    summary="List Installments",
    description="All installments ordered by due date. Pending installments past due are marked overdue first."
)
def get_installments():
    try:
        return [InstallmentResponse.from_domain(inst) for inst in list_installments()]
    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Failed to list installments: {str(e)}"
        )


@router.patch(
    "/installments/{installment_id}/status",
    response_model=OperationResponse,
    summary="Set Installment Status",
    description="Mark an installment as paid (stamps today's date) or pending (clears paid date and method)."
)
def change_installment_status(installment_id: str, request: InstallmentStatusRequest):
    result = set_installment_status(installment_id, request.status, request.payment_method)
    return OperationResponse(success=result.success, error=result.error)
