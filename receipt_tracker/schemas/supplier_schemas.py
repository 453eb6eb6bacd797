# receipt_tracker/schemas/supplier_schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


# -----------------------------
# Supplier Schemas
# -----------------------------
class SupplierCreate(BaseModel):
    """Schema for creating a new supplier"""
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    is_active: bool = True


class SupplierUpdate(BaseModel):
    """Schema for updating an existing supplier"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    is_active: Optional[bool] = None


class SupplierOut(SupplierCreate):
    """Schema for returning supplier data"""
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SupplierListResponse(BaseModel):
    """Schema for returning a list of suppliers"""
    message: str
    total: int
    data: List[SupplierOut]


class SupplierResponse(BaseModel):
    """Schema for returning a single supplier"""
    message: str
    data: SupplierOut
