# receipt_tracker/schemas/payment_schemas.py
from datetime import date as DateType, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, model_validator

from receipt_tracker.models.purchase_models import PurchaseStatus
from receipt_tracker.schemas.common import Grams, KaratType, Money


class PaymentCreate(BaseModel):
    purchase_id: int
    date: DateType
    grams_paid: Grams = Decimal("0")
    fees_paid: Money = Decimal("0")
    karat_type: KaratType = "21"
    note: Optional[str] = None

    @model_validator(mode="after")
    def check_has_amount(self):
        if self.grams_paid <= 0 and self.fees_paid <= 0:
            raise ValueError("A payment needs grams_paid or fees_paid greater than zero")
        return self


class PaymentUpdate(BaseModel):
    date: Optional[DateType] = None
    grams_paid: Optional[Grams] = None
    fees_paid: Optional[Money] = None
    karat_type: Optional[KaratType] = None
    note: Optional[str] = None


class PaymentOut(BaseModel):
    id: int
    purchase_id: int
    date: DateType
    grams_paid: Decimal
    fees_paid: Decimal
    karat_type: str
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PaymentResponse(BaseModel):
    message: str
    data: PaymentOut


class PaymentListResponse(BaseModel):
    message: str
    total: int
    data: List[PaymentOut]


class PurchaseBalance(BaseModel):
    purchase_id: int
    status: PurchaseStatus
    total_net_fees: Decimal
    total_fees_paid: Decimal
    balance_due: Decimal
    total_grams_21k_equivalent: Decimal
    total_grams_paid_21k: Decimal
    grams_due: Decimal


class PurchaseBalanceResponse(BaseModel):
    message: str
    data: PurchaseBalance
