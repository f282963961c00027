"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Request models only check the payload shape; sanitizing and business
validation happen in domain.sale_form so that every entry point shares them.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from domain.installment import Installment
from domain.sale import Sale, SaleItem
from domain.stock import StockShortage, StockValidationResult


# ============================================================================
# Stock Models
# ============================================================================

class StockLineRequest(BaseModel):
    """Single requested line for a stock check."""
    product_id: Optional[str] = None
    product_name: str
    quantity: int = Field(..., ge=1)


class StockValidationRequest(BaseModel):
    """Request to check stock availability."""
    items: List[StockLineRequest] = Field(..., min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "items": [
                    {"product_id": "a3f1c2d4-0000-0000-0000-000000000001", "product_name": "Silver ring", "quantity": 2}
                ]
            }
        }


class StockShortageResponse(BaseModel):
    product_id: str
    product_name: str
    requested: int
    available: int

    @classmethod
    def from_domain(cls, shortage: StockShortage) -> "StockShortageResponse":
        return cls(
            product_id=shortage.product_id,
            product_name=shortage.product_name,
            requested=shortage.requested,
            available=shortage.available,
        )


class StockValidationResponse(BaseModel):
    """Response for a stock check: every problem, not just the first."""
    is_valid: bool
    violations: List[str]
    shortages: List[StockShortageResponse]

    @classmethod
    def from_domain(cls, result: StockValidationResult) -> "StockValidationResponse":
        return cls(
            is_valid=result.is_valid,
            violations=list(result.violations),
            shortages=[StockShortageResponse.from_domain(s) for s in result.shortages],
        )


# ============================================================================
# Sale Models
# ============================================================================

class SaleItemRequest(BaseModel):
    """Line item of a new sale. product_id is omitted for off-catalog items."""
    product_id: Optional[str] = None
    product_name: str
    quantity: int
    unit_price: Decimal


class InstallmentPlanRequest(BaseModel):
    """Explicit installment (optional; otherwise the schedule is generated)."""
    amount: Decimal
    due_date: date


class SaleCreateRequest(BaseModel):
    """Request to record a sale. Any total sent by the client is ignored."""
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_method: str = "cash"
    payment_status: str = "pending"
    installments_count: int = 1
    sale_date: Optional[date] = None
    first_due_date: Optional[date] = None
    notes: Optional[str] = None
    total_amount: Optional[Decimal] = None
    items: List[SaleItemRequest]
    installments: List[InstallmentPlanRequest] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "customer_name": "Ana Souza",
                "customer_email": "ana@example.com",
                "payment_method": "installments",
                "payment_status": "partial",
                "installments_count": 3,
                "sale_date": "2025-03-10",
                "items": [
                    {
                        "product_id": "a3f1c2d4-0000-0000-0000-000000000001",
                        "product_name": "Silver ring",
                        "quantity": 2,
                        "unit_price": "150.00"
                    }
                ]
            }
        }


class SaleUpdateRequest(BaseModel):
    """Header fields that can change after a sale is recorded."""
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    sale_date: Optional[date] = None
    notes: Optional[str] = None


class SaleItemResponse(BaseModel):
    item_id: str
    product_id: Optional[str]
    product_name: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    @classmethod
    def from_domain(cls, item: SaleItem) -> "SaleItemResponse":
        return cls(
            item_id=item.item_id,
            product_id=item.product_id,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total_price=item.total_price,
        )


class InstallmentResponse(BaseModel):
    installment_id: str
    sale_id: str
    installment_number: int
    amount: Decimal
    due_date: date
    status: str
    paid_date: Optional[date] = None
    payment_method: Optional[str] = None

    @classmethod
    def from_domain(cls, inst: Installment) -> "InstallmentResponse":
        return cls(
            installment_id=inst.installment_id,
            sale_id=inst.sale_id,
            installment_number=inst.installment_number,
            amount=inst.amount,
            due_date=inst.due_date,
            status=inst.status.value,
            paid_date=inst.paid_date,
            payment_method=inst.payment_method,
        )


class SaleResponse(BaseModel):
    sale_id: str
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    total_amount: Decimal
    payment_method: str
    payment_status: str
    installments_count: int
    sale_date: date
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[SaleItemResponse]
    installments: List[InstallmentResponse]

    @classmethod
    def from_domain(cls, sale: Sale) -> "SaleResponse":
        return cls(
            sale_id=sale.sale_id,
            customer_name=sale.customer_name,
            customer_email=sale.customer_email,
            customer_phone=sale.customer_phone,
            total_amount=sale.total_amount,
            payment_method=sale.payment_method.value,
            payment_status=sale.payment_status.value,
            installments_count=sale.installments_count,
            sale_date=sale.sale_date,
            notes=sale.notes,
            created_at=sale.created_at,
            items=[SaleItemResponse.from_domain(item) for item in sale.items],
            installments=[InstallmentResponse.from_domain(inst) for inst in sale.installments],
        )


class CreateSaleResponse(BaseModel):
    """Response after a sale creation attempt."""
    success: bool
    sale: Optional[SaleResponse] = None
    error: Optional[str] = None
    state: str

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "sale": None,
                "error": "Insufficient stock: Insufficient stock for Silver ring. Requested: 3, available: 2",
                "state": "validating_stock"
            }
        }


# ============================================================================
# Installment Models
# ============================================================================

class InstallmentStatusRequest(BaseModel):
    status: str
    payment_method: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {"status": "paid", "payment_method": "pix"}
        }


# ============================================================================
# Generic Models
# ============================================================================

class OperationResponse(BaseModel):
    """Result of an update/delete operation."""
    success: bool
    error: Optional[str] = None
