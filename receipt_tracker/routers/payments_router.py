# receipt_tracker/routers/payments_router.py
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.db import get_db
from receipt_tracker.routers.deps import get_today
from receipt_tracker.schemas.payment_schemas import (
    PaymentCreate,
    PaymentListResponse,
    PaymentResponse,
    PaymentUpdate,
    PurchaseBalanceResponse,
)
from receipt_tracker.schemas.response_schemas import MessageResponse
from receipt_tracker.services.payment_service import (
    create_payment,
    delete_payment,
    get_all_payments,
    get_payment,
    get_purchase_balance,
    get_purchase_payments,
    update_payment,
)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentResponse, status_code=201)
async def create_payment_route(
    data: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
):
    return await create_payment(db, data, today)


@router.get("", response_model=PaymentListResponse)
async def list_payments(
    db: AsyncSession = Depends(get_db),
    purchase_id: Optional[int] = Query(None),
    karat_type: Optional[str] = Query(None, pattern="^(18|21)$"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
):
    return await get_all_payments(db, purchase_id, karat_type, limit, offset)


@router.get("/karat/{karat_type}", response_model=PaymentListResponse)
async def list_payments_by_karat(
    karat_type: str = Path(..., pattern="^(18|21)$"),
    db: AsyncSession = Depends(get_db),
):
    return await get_all_payments(db, karat_type=karat_type, limit=1000)


@router.get("/purchase/{purchase_id}", response_model=PaymentListResponse)
async def list_purchase_payments(purchase_id: int, db: AsyncSession = Depends(get_db)):
    return await get_purchase_payments(db, purchase_id)


@router.get("/purchase/{purchase_id}/balance", response_model=PurchaseBalanceResponse)
async def purchase_balance(purchase_id: int, db: AsyncSession = Depends(get_db)):
    return await get_purchase_balance(db, purchase_id)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment_route(payment_id: int, db: AsyncSession = Depends(get_db)):
    return await get_payment(db, payment_id)


@router.put("/{payment_id}", response_model=PaymentResponse)
async def update_payment_route(
    payment_id: int,
    data: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
):
    return await update_payment(db, payment_id, data, today)


@router.delete("/{payment_id}", response_model=MessageResponse)
async def delete_payment_route(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
):
    return await delete_payment(db, payment_id, today)
