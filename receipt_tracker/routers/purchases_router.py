# receipt_tracker/routers/purchases_router.py
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.db import get_db
from receipt_tracker.models.purchase_models import PurchaseStatus
from receipt_tracker.routers.deps import get_recalculation_queue, get_today
from receipt_tracker.schemas.purchase_schemas import (
    PurchaseCreate,
    PurchaseListResponse,
    PurchaseResponse,
    PurchaseUpdate,
    ReceiptBulkCreate,
)
from receipt_tracker.schemas.response_schemas import MessageResponse
from receipt_tracker.services.purchase_service import (
    add_receipts_to_purchase,
    create_purchase,
    delete_purchase,
    get_all_purchases,
    get_purchase,
    update_purchase,
)

router = APIRouter(prefix="/purchases", tags=["Purchases"])


# -----------------------------------------------------------
# CREATE PURCHASE (with suppliers and receipts)
# -----------------------------------------------------------
@router.post("", response_model=PurchaseResponse, status_code=201)
async def create_purchase_route(
    data: PurchaseCreate,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
    queue=Depends(get_recalculation_queue),
):
    return await create_purchase(db, data, today, queue)


# -----------------------------------------------------------
# LIST PURCHASES
# -----------------------------------------------------------
@router.get("", response_model=PurchaseListResponse)
async def list_purchases(
    db: AsyncSession = Depends(get_db),
    store_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    status: Optional[PurchaseStatus] = Query(None),
    month: Optional[str] = Query(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
):
    return await get_all_purchases(db, store_id, supplier_id, status, month, page, page_size)


@router.get("/{purchase_id}", response_model=PurchaseResponse)
async def get_purchase_route(purchase_id: int, db: AsyncSession = Depends(get_db)):
    return await get_purchase(db, purchase_id)


@router.put("/{purchase_id}", response_model=PurchaseResponse)
async def update_purchase_route(
    purchase_id: int,
    data: PurchaseUpdate,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
    queue=Depends(get_recalculation_queue),
):
    return await update_purchase(db, purchase_id, data, today, queue)


@router.delete("/{purchase_id}", response_model=MessageResponse)
async def delete_purchase_route(
    purchase_id: int,
    db: AsyncSession = Depends(get_db),
    queue=Depends(get_recalculation_queue),
):
    return await delete_purchase(db, purchase_id, queue)


# -----------------------------------------------------------
# ADD RECEIPTS FOR A SUPPLIER
# -----------------------------------------------------------
@router.post("/{purchase_id}/suppliers/{supplier_id}/receipts", response_model=PurchaseResponse, status_code=201)
async def add_receipts_route(
    purchase_id: int,
    supplier_id: int,
    data: ReceiptBulkCreate,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
    queue=Depends(get_recalculation_queue),
):
    return await add_receipts_to_purchase(db, purchase_id, supplier_id, data, today, queue)
