# receipt_tracker/routers/purchase_suppliers_router.py
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.db import get_db
from receipt_tracker.routers.deps import get_recalculation_queue, get_today
from receipt_tracker.schemas.purchase_schemas import PurchaseSupplierListResponse, PurchaseSupplierResponse
from receipt_tracker.schemas.response_schemas import MessageResponse
from receipt_tracker.services.purchase_supplier_service import (
    delete_purchase_supplier,
    get_all_purchase_suppliers,
    get_purchase_supplier,
)

router = APIRouter(prefix="/purchase-suppliers", tags=["Purchase Suppliers"])


@router.get("", response_model=PurchaseSupplierListResponse)
async def list_purchase_suppliers(
    db: AsyncSession = Depends(get_db),
    purchase_id: Optional[int] = Query(None),
    supplier_id: Optional[int] = Query(None),
):
    return await get_all_purchase_suppliers(db, purchase_id, supplier_id)


@router.get("/purchase/{purchase_id}", response_model=PurchaseSupplierListResponse)
async def list_by_purchase(purchase_id: int, db: AsyncSession = Depends(get_db)):
    return await get_all_purchase_suppliers(db, purchase_id=purchase_id)


@router.get("/supplier/{supplier_id}", response_model=PurchaseSupplierListResponse)
async def list_by_supplier(supplier_id: int, db: AsyncSession = Depends(get_db)):
    return await get_all_purchase_suppliers(db, supplier_id=supplier_id)


@router.get("/{link_id}", response_model=PurchaseSupplierResponse)
async def get_purchase_supplier_route(link_id: int, db: AsyncSession = Depends(get_db)):
    return await get_purchase_supplier(db, link_id)


@router.delete("/{link_id}", response_model=MessageResponse)
async def delete_purchase_supplier_route(
    link_id: int,
    db: AsyncSession = Depends(get_db),
    today: date = Depends(get_today),
    queue=Depends(get_recalculation_queue),
):
    return await delete_purchase_supplier(db, link_id, today, queue)
