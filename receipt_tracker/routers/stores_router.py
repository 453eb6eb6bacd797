# receipt_tracker/routers/stores_router.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.db import get_db
from receipt_tracker.schemas.response_schemas import MessageResponse
from receipt_tracker.schemas.store_schemas import StoreCreate, StoreListResponse, StoreResponse, StoreUpdate
from receipt_tracker.services.store_service import (
    create_store,
    delete_store,
    get_all_stores,
    get_store,
    update_store,
)

router = APIRouter(prefix="/stores", tags=["Stores"])


@router.post("", response_model=StoreResponse, status_code=201)
async def create_store_route(data: StoreCreate, db: AsyncSession = Depends(get_db)):
    return await create_store(db, data)


@router.get("", response_model=StoreListResponse)
async def list_stores(
    db: AsyncSession = Depends(get_db),
    search: Optional[str] = Query(None, description="Search by store name or code"),
    active_only: bool = Query(False),
):
    return await get_all_stores(db, search, active_only)


@router.get("/{store_id}", response_model=StoreResponse)
async def get_store_route(store_id: int, db: AsyncSession = Depends(get_db)):
    return await get_store(db, store_id)


@router.put("/{store_id}", response_model=StoreResponse)
async def update_store_route(store_id: int, data: StoreUpdate, db: AsyncSession = Depends(get_db)):
    return await update_store(db, store_id, data)


@router.delete("/{store_id}", response_model=MessageResponse)
async def delete_store_route(store_id: int, db: AsyncSession = Depends(get_db)):
    return await delete_store(db, store_id)
