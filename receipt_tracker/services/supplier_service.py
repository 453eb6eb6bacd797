# receipt_tracker/services/supplier_service.py
from sqlalchemy import select, func, or_, asc, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.exceptions import ConflictError, NotFoundError
from receipt_tracker.models.supplier_models import Supplier
from receipt_tracker.schemas.supplier_schemas import SupplierCreate, SupplierOut, SupplierUpdate

ALLOWED_SORT_FIELDS = {
    "id": Supplier.id,
    "name": Supplier.name,
    "code": Supplier.code,
    "created_at": Supplier.created_at,
}


async def get_supplier_or_404(db: AsyncSession, supplier_id: int) -> Supplier:
    supplier = (await db.execute(select(Supplier).where(Supplier.id == supplier_id))).scalars().first()
    if not supplier:
        raise NotFoundError("Supplier not found")
    return supplier


async def _ensure_unique(db: AsyncSession, name: str = None, code: str = None, exclude_id: int = None) -> None:
    if name:
        stmt = select(Supplier.id).where(Supplier.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Supplier.id != exclude_id)
        if (await db.execute(stmt)).first():
            raise ConflictError(f"Supplier '{name}' already exists")
    if code:
        stmt = select(Supplier.id).where(Supplier.code == code)
        if exclude_id is not None:
            stmt = stmt.where(Supplier.id != exclude_id)
        if (await db.execute(stmt)).first():
            raise ConflictError(f"Supplier code '{code}' already exists")


# ---------------------------
# CREATE SUPPLIER
# ---------------------------
async def create_supplier(db: AsyncSession, data: SupplierCreate) -> dict:
    await _ensure_unique(db, name=data.name, code=data.code)

    supplier = Supplier(**data.model_dump())
    db.add(supplier)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Supplier with the same name or code already exists")

    await db.refresh(supplier)
    return {"message": "Supplier created successfully", "data": SupplierOut.model_validate(supplier)}


# ---------------------------
# GET ALL SUPPLIERS (with filters, sorting)
# ---------------------------
async def get_all_suppliers(
    db: AsyncSession,
    search: str = None,
    include_inactive: bool = False,
    sort_by: str = "name",
    order: str = "asc",
) -> dict:
    sort_column = ALLOWED_SORT_FIELDS.get(sort_by, Supplier.name)
    sort_order = desc(sort_column) if order.lower() == "desc" else asc(sort_column)

    stmt = select(Supplier)
    count_stmt = select(func.count(Supplier.id))
    if not include_inactive:
        stmt = stmt.where(Supplier.is_active.is_(True))
        count_stmt = count_stmt.where(Supplier.is_active.is_(True))
    if search:
        condition = or_(Supplier.name.ilike(f"%{search}%"), Supplier.code.ilike(f"%{search}%"))
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    total = (await db.execute(count_stmt)).scalar() or 0
    suppliers = (await db.execute(stmt.order_by(sort_order))).scalars().all()

    return {
        "message": "Suppliers fetched successfully",
        "total": total,
        "data": [SupplierOut.model_validate(s) for s in suppliers],
    }


# ---------------------------
# GET SINGLE SUPPLIER
# ---------------------------
async def get_supplier(db: AsyncSession, supplier_id: int) -> dict:
    supplier = await get_supplier_or_404(db, supplier_id)
    return {"message": "Supplier fetched successfully", "data": SupplierOut.model_validate(supplier)}


# ---------------------------
# UPDATE SUPPLIER
# ---------------------------
async def update_supplier(db: AsyncSession, supplier_id: int, data: SupplierUpdate) -> dict:
    supplier = await get_supplier_or_404(db, supplier_id)
    changes = data.model_dump(exclude_unset=True)

    await _ensure_unique(
        db,
        name=changes.get("name") if changes.get("name") != supplier.name else None,
        code=changes.get("code") if changes.get("code") != supplier.code else None,
        exclude_id=supplier.id,
    )

    for key, value in changes.items():
        setattr(supplier, key, value)

    await db.commit()
    await db.refresh(supplier)
    return {"message": "Supplier updated successfully", "data": SupplierOut.model_validate(supplier)}


# ---------------------------
# DELETE SUPPLIER
# ---------------------------
async def delete_supplier(db: AsyncSession, supplier_id: int) -> dict:
    """Suppliers are referenced by historical receipts, so deletion only deactivates."""
    supplier = await get_supplier_or_404(db, supplier_id)
    supplier.is_active = False
    await db.commit()
    return {"message": "Supplier deactivated successfully"}
