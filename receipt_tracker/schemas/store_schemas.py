# receipt_tracker/schemas/store_schemas.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class StoreCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50)
    is_active: bool = True


class StoreUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    is_active: Optional[bool] = None


class StoreOut(StoreCreate):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StoreResponse(BaseModel):
    message: str
    data: StoreOut


class StoreListResponse(BaseModel):
    message: str
    total: int
    data: List[StoreOut]
