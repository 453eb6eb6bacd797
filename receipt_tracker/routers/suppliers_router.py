# receipt_tracker/routers/suppliers_router.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.db import get_db
from receipt_tracker.schemas.response_schemas import MessageResponse
from receipt_tracker.schemas.supplier_schemas import (
    SupplierCreate,
    SupplierListResponse,
    SupplierResponse,
    SupplierUpdate,
)
from receipt_tracker.services.supplier_service import (
    create_supplier,
    delete_supplier,
    get_all_suppliers,
    get_supplier,
    update_supplier,
)

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


# -----------------------------------------------------------
# CREATE SUPPLIER
# -----------------------------------------------------------
@router.post("", response_model=SupplierResponse, status_code=201)
async def create_supplier_route(data: SupplierCreate, db: AsyncSession = Depends(get_db)):
    return await create_supplier(db, data)


# -----------------------------------------------------------
# LIST ALL SUPPLIERS
# -----------------------------------------------------------
@router.get("", response_model=SupplierListResponse)
async def list_suppliers(
    db: AsyncSession = Depends(get_db),
    search: Optional[str] = Query(None, description="Search by supplier name or code"),
    include_inactive: bool = Query(False),
    sort_by: str = Query("name"),
    order: str = Query("asc"),
):
    return await get_all_suppliers(db, search, include_inactive, sort_by, order)


# -----------------------------------------------------------
# GET SUPPLIER BY ID
# -----------------------------------------------------------
@router.get("/{supplier_id}", response_model=SupplierResponse)
async def get_supplier_by_id(supplier_id: int, db: AsyncSession = Depends(get_db)):
    return await get_supplier(db, supplier_id)


# -----------------------------------------------------------
# UPDATE SUPPLIER
# -----------------------------------------------------------
@router.put("/{supplier_id}", response_model=SupplierResponse)
async def update_supplier_route(supplier_id: int, data: SupplierUpdate, db: AsyncSession = Depends(get_db)):
    return await update_supplier(db, supplier_id, data)


# -----------------------------------------------------------
# DELETE (DEACTIVATE) SUPPLIER
# -----------------------------------------------------------
@router.delete("/{supplier_id}", response_model=MessageResponse)
async def delete_supplier_route(supplier_id: int, db: AsyncSession = Depends(get_db)):
    return await delete_supplier(db, supplier_id)
