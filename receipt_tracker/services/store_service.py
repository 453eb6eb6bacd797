# receipt_tracker/services/store_service.py
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.exceptions import ConflictError, NotFoundError
from receipt_tracker.models.purchase_models import Purchase
from receipt_tracker.models.store_models import Store
from receipt_tracker.schemas.store_schemas import StoreCreate, StoreOut, StoreUpdate


async def _get_store_or_404(db: AsyncSession, store_id: int) -> Store:
    store = (await db.execute(select(Store).where(Store.id == store_id))).scalars().first()
    if not store:
        raise NotFoundError("Store not found")
    return store


async def _ensure_code_free(db: AsyncSession, code: str, exclude_id: int = None) -> None:
    stmt = select(Store.id).where(Store.code == code)
    if exclude_id is not None:
        stmt = stmt.where(Store.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError(f"Store code '{code}' already exists")


# ---------------------------
# CREATE STORE
# ---------------------------
async def create_store(db: AsyncSession, data: StoreCreate) -> dict:
    await _ensure_code_free(db, data.code)
    store = Store(**data.model_dump())
    db.add(store)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Store code '{data.code}' already exists")
    await db.refresh(store)
    return {"message": "Store created successfully", "data": StoreOut.model_validate(store)}


# ---------------------------
# LIST STORES
# ---------------------------
async def get_all_stores(db: AsyncSession, search: str = None, active_only: bool = False) -> dict:
    stmt = select(Store)
    if search:
        stmt = stmt.where(or_(Store.name.ilike(f"%{search}%"), Store.code.ilike(f"%{search}%")))
    if active_only:
        stmt = stmt.where(Store.is_active.is_(True))
    stores = (await db.execute(stmt.order_by(Store.name))).scalars().all()
    return {
        "message": "Stores fetched successfully",
        "total": len(stores),
        "data": [StoreOut.model_validate(s) for s in stores],
    }


async def get_store(db: AsyncSession, store_id: int) -> dict:
    store = await _get_store_or_404(db, store_id)
    return {"message": "Store fetched successfully", "data": StoreOut.model_validate(store)}


# ---------------------------
# UPDATE STORE
# ---------------------------
async def update_store(db: AsyncSession, store_id: int, data: StoreUpdate) -> dict:
    store = await _get_store_or_404(db, store_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("code") and changes["code"] != store.code:
        await _ensure_code_free(db, changes["code"], exclude_id=store.id)

    for key, value in changes.items():
        setattr(store, key, value)

    await db.commit()
    await db.refresh(store)
    return {"message": "Store updated successfully", "data": StoreOut.model_validate(store)}


# ---------------------------
# DELETE STORE
# ---------------------------
async def delete_store(db: AsyncSession, store_id: int) -> dict:
    store = await _get_store_or_404(db, store_id)
    purchase_count = (
        await db.execute(select(func.count(Purchase.id)).where(Purchase.store_id == store_id))
    ).scalar() or 0
    if purchase_count:
        raise ConflictError(f"Store has {purchase_count} purchases and cannot be deleted")

    await db.delete(store)
    await db.commit()
    return {"message": "Store deleted successfully"}
