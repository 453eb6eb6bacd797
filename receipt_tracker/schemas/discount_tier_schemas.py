# receipt_tracker/schemas/discount_tier_schemas.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from receipt_tracker.schemas.common import Grams, KaratType, Rate


class DiscountTierBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    karat_type: KaratType = "21"
    threshold: Grams
    discount_percentage: Rate
    is_protected: bool = False


class DiscountTierCreate(DiscountTierBase):
    supplier_id: int


class DiscountTierUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    karat_type: Optional[KaratType] = None
    threshold: Optional[Grams] = None
    discount_percentage: Optional[Rate] = None
    is_protected: Optional[bool] = None


class DiscountTierOut(DiscountTierBase):
    id: int
    supplier_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DiscountTierResponse(BaseModel):
    message: str
    data: DiscountTierOut


class DiscountTierListResponse(BaseModel):
    message: str
    total: int
    data: List[DiscountTierOut]
