# receipt_tracker/routers/purchase_receipts_router.py
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.db import get_db
from receipt_tracker.routers.deps import get_recalculation_queue, get_today
from receipt_tracker.schemas.purchase_schemas import (
    PurchaseReceiptCreate,
    ReceiptListResponse,
    ReceiptResponse,
    ReceiptUpdate,
)
from receipt_tracker.schemas.response_schemas import MessageResponse
from receipt_tracker.services.purchase_service import create_receipt
from receipt_tracker.services.receipt_service import (
    delete_receipt,
    get_all_receipts,
    get_receipt,
    update_receipt,
)

router = APIRouter(prefix="/purchase-receipts", tags=["Purchase Receipts"])


@router.post("", response_model=ReceiptResponse, status_code=201)
async def create_receipt_route(
    data: PurchaseReceiptCreate,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
    queue=Depends(get_recalculation_queue),
):
    return await create_receipt(db, data, today, queue)


@router.get("", response_model=ReceiptListResponse)
async def list_receipts(
    db: AsyncSession = Depends(get_db),
    purchase_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    return await get_all_receipts(db, purchase_id, supplier_id, limit, offset)


@router.get("/purchase/{purchase_id}", response_model=ReceiptListResponse)
async def list_by_purchase(purchase_id: int, db: AsyncSession = Depends(get_db)):
    return await get_all_receipts(db, purchase_id=purchase_id, limit=1000)


@router.get("/supplier/{supplier_id}", response_model=ReceiptListResponse)
async def list_by_supplier(supplier_id: int, db: AsyncSession = Depends(get_db)):
    return await get_all_receipts(db, supplier_id=supplier_id, limit=1000)


@router.get("/{receipt_id}", response_model=ReceiptResponse)
async def get_receipt_route(receipt_id: int, db: AsyncSession = Depends(get_db)):
    return await get_receipt(db, receipt_id)


@router.put("/{receipt_id}", response_model=ReceiptResponse)
async def update_receipt_route(
    receipt_id: int,
    data: ReceiptUpdate,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
    queue=Depends(get_recalculation_queue),
):
    return await update_receipt(db, receipt_id, data, today, queue)


@router.delete("/{receipt_id}", response_model=MessageResponse)
async def delete_receipt_route(
    receipt_id: int,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
    queue=Depends(get_recalculation_queue),
):
    return await delete_receipt(db, receipt_id, today, queue)
