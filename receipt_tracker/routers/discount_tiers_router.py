# receipt_tracker/routers/discount_tiers_router.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.db import get_db
from receipt_tracker.routers.deps import get_current_month, get_recalculation_queue
from receipt_tracker.schemas.discount_tier_schemas import (
    DiscountTierCreate,
    DiscountTierListResponse,
    DiscountTierResponse,
    DiscountTierUpdate,
)
from receipt_tracker.schemas.response_schemas import MessageResponse
from receipt_tracker.services.discount_tier_service import (
    create_discount_tier,
    delete_discount_tier,
    get_all_discount_tiers,
    get_discount_tier,
    get_supplier_discount_tiers,
    update_discount_tier,
)

router = APIRouter(prefix="/discount-tiers", tags=["Discount Tiers"])


@router.post("", response_model=DiscountTierResponse, status_code=201)
async def create_discount_tier_route(
    data: DiscountTierCreate,
    db: AsyncSession = Depends(get_db),
    month: str = Depends(get_current_month),
    queue=Depends(get_recalculation_queue),
):
    return await create_discount_tier(db, data, month, queue)


@router.get("", response_model=DiscountTierListResponse)
async def list_discount_tiers(
    db: AsyncSession = Depends(get_db),
    supplier_id: Optional[int] = Query(None),
    karat_type: Optional[str] = Query(None, pattern="^(18|21)$"),
):
    return await get_all_discount_tiers(db, supplier_id, karat_type)


@router.get("/supplier/{supplier_id}", response_model=DiscountTierListResponse)
async def list_supplier_discount_tiers(supplier_id: int, db: AsyncSession = Depends(get_db)):
    return await get_supplier_discount_tiers(db, supplier_id)


@router.get("/{tier_id}", response_model=DiscountTierResponse)
async def get_discount_tier_route(tier_id: int, db: AsyncSession = Depends(get_db)):
    return await get_discount_tier(db, tier_id)


@router.put("/{tier_id}", response_model=DiscountTierResponse)
async def update_discount_tier_route(
    tier_id: int,
    data: DiscountTierUpdate,
    db: AsyncSession = Depends(get_db),
    month: str = Depends(get_current_month),
    queue=Depends(get_recalculation_queue),
):
    return await update_discount_tier(db, tier_id, data, month, queue)


@router.delete("/{tier_id}", response_model=MessageResponse)
async def delete_discount_tier_route(
    tier_id: int,
    db: AsyncSession = Depends(get_db),
    month: str = Depends(get_current_month),
    queue=Depends(get_recalculation_queue),
):
    return await delete_discount_tier(db, tier_id, month, queue)
