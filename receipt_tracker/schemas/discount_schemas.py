# receipt_tracker/schemas/discount_schemas.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from receipt_tracker.schemas.common import Grams, KaratType, Money, MonthKey


# -----------------------------
# Discount Calculation
# -----------------------------
class DiscountRequest(BaseModel):
    supplier_id: int
    grams: Grams
    karat_type: KaratType = "21"
    month: Optional[MonthKey] = None
    purchase_id: Optional[int] = None
    base_fee: Optional[Money] = None


class DiscountResult(BaseModel):
    """Outcome of pricing one receipt. ``degraded`` is set when a lookup failed and no discount was applied."""
    rate: Decimal
    amount: Decimal
    rank: str
    monthly_total: Decimal
    base_fee: Decimal
    grams_21k_equivalent: Decimal
    degraded: bool = False
    error: Optional[str] = None


class DiscountResponse(BaseModel):
    message: str
    data: DiscountResult


# -----------------------------
# Recalculation
# -----------------------------
class RecalculationResult(BaseModel):
    success: bool
    supplier_id: Optional[int] = None
    month: str
    updated: int = 0
    message: str = ""
    error: Optional[str] = None


class MonthRecalculationResult(BaseModel):
    success: bool
    month: str
    total_updated: int = 0
    suppliers: List[RecalculationResult] = []
    message: str = ""


class RecalculationResponse(BaseModel):
    message: str
    data: RecalculationResult


class MonthRecalculationResponse(BaseModel):
    message: str
    data: MonthRecalculationResult


class PendingRecalculationOut(BaseModel):
    id: int
    month: str
    supplier_id: Optional[int] = None
    reason: str
    attempts: int
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PendingRecalculationListResponse(BaseModel):
    message: str
    total: int
    data: List[PendingRecalculationOut]


class DrainResult(BaseModel):
    processed: int
    failed: int
    remaining: int


class DrainResponse(BaseModel):
    message: str
    data: DrainResult


# -----------------------------
# Monthly Totals
# -----------------------------
class MonthlyTotal(BaseModel):
    month: str
    supplier_id: Optional[int] = None
    total_grams_21k: Decimal


class MonthlyTotalResponse(BaseModel):
    message: str
    data: MonthlyTotal


class MonthSummary(BaseModel):
    month: str
    total_grams_21k: Decimal = Field(default=Decimal("0"))
    purchase_count: int = 0
    receipt_count: int = 0


class MonthSummaryResponse(BaseModel):
    message: str
    data: MonthSummary


class MonthHistoryResponse(BaseModel):
    message: str
    total: int
    data: List[MonthSummary]
