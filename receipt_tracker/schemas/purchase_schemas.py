# receipt_tracker/schemas/purchase_schemas.py
from datetime import date as DateType, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

from receipt_tracker.models.purchase_models import PurchaseStatus
from receipt_tracker.schemas.common import Grams, Money


# -----------------------------
# Input Schemas
# -----------------------------
class ReceiptCreate(BaseModel):
    """A supplier receipt. ``base_fees`` defaults to grams (21k) x the configured fee per gram."""
    receipt_number: Optional[int] = Field(None, ge=1)
    grams_18k: Grams = Decimal("0")
    grams_21k: Grams = Decimal("0")
    base_fees: Optional[Money] = None

    @model_validator(mode="after")
    def check_has_weight(self):
        if self.grams_18k <= 0 and self.grams_21k <= 0:
            raise ValueError("A receipt needs grams_18k or grams_21k greater than zero")
        return self


class PurchaseReceiptCreate(ReceiptCreate):
    """A single receipt recorded straight against an existing purchase."""
    purchase_id: int
    supplier_id: int


class ReceiptUpdate(BaseModel):
    grams_18k: Optional[Grams] = None
    grams_21k: Optional[Grams] = None
    base_fees: Optional[Money] = None


class PurchaseSupplierCreate(BaseModel):
    supplier_id: int
    receipts: List[ReceiptCreate] = Field(..., min_length=1)


class PurchaseCreate(BaseModel):
    store_id: int
    date: DateType
    due_date: Optional[DateType] = None
    suppliers: List[PurchaseSupplierCreate] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_unique_suppliers(self):
        ids = [s.supplier_id for s in self.suppliers]
        if len(ids) != len(set(ids)):
            raise ValueError("Each supplier may appear only once per purchase")
        return self


class PurchaseUpdate(BaseModel):
    store_id: Optional[int] = None
    date: Optional[DateType] = None
    due_date: Optional[DateType] = None


class ReceiptBulkCreate(BaseModel):
    receipts: List[ReceiptCreate] = Field(..., min_length=1)


# -----------------------------
# Output Schemas
# -----------------------------
class ReceiptOut(BaseModel):
    id: int
    purchase_id: int
    supplier_id: int
    receipt_number: int
    grams_18k: Decimal
    grams_21k: Decimal
    total_grams_21k: Decimal
    base_fees: Decimal
    discount_rate: Decimal
    discount_amount: Decimal
    net_fees: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchaseSupplierOut(BaseModel):
    id: int
    purchase_id: int
    supplier_id: int
    total_grams_18k: Decimal
    total_grams_21k: Decimal
    total_grams_21k_equivalent: Decimal
    total_base_fees: Decimal
    total_discount_amount: Decimal
    total_net_fees: Decimal
    receipt_count: int

    class Config:
        from_attributes = True


class PurchaseOut(BaseModel):
    id: int
    store_id: int
    date: DateType
    due_date: Optional[DateType] = None
    status: PurchaseStatus
    total_grams_21k_equivalent: Decimal
    total_base_fees: Decimal
    total_discount_amount: Decimal
    total_net_fees: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    suppliers: List[PurchaseSupplierOut] = []
    receipts: List[ReceiptOut] = []

    class Config:
        from_attributes = True


class PurchaseResponse(BaseModel):
    message: str
    data: PurchaseOut


class PurchaseListResponse(BaseModel):
    message: str
    total: int
    data: List[PurchaseOut]


class PurchaseSupplierResponse(BaseModel):
    message: str
    data: PurchaseSupplierOut


class PurchaseSupplierListResponse(BaseModel):
    message: str
    total: int
    data: List[PurchaseSupplierOut]


class ReceiptResponse(BaseModel):
    message: str
    data: ReceiptOut


class ReceiptListResponse(BaseModel):
    message: str
    total: int
    data: List[ReceiptOut]
