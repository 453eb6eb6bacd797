# receipt_tracker/services/purchase_supplier_service.py
from datetime import date
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.exceptions import NotFoundError
from receipt_tracker.models.purchase_models import Purchase, PurchaseReceipt, PurchaseSupplier
from receipt_tracker.schemas.purchase_schemas import PurchaseSupplierOut
from receipt_tracker.services.aggregate_service import refresh_purchase_aggregates
from receipt_tracker.services.payment_service import refresh_purchase_status
from receipt_tracker.utils.months import month_key
from receipt_tracker.utils.recalculation_helpers import mark_recalculation_pending


async def _get_link_or_404(db: AsyncSession, link_id: int) -> PurchaseSupplier:
    link = (await db.execute(select(PurchaseSupplier).where(PurchaseSupplier.id == link_id))).scalars().first()
    if not link:
        raise NotFoundError("Purchase supplier not found")
    return link


async def get_all_purchase_suppliers(db: AsyncSession, purchase_id: int = None, supplier_id: int = None) -> dict:
    stmt = select(PurchaseSupplier)
    count_stmt = select(func.count(PurchaseSupplier.id))
    if purchase_id is not None:
        stmt = stmt.where(PurchaseSupplier.purchase_id == purchase_id)
        count_stmt = count_stmt.where(PurchaseSupplier.purchase_id == purchase_id)
    if supplier_id is not None:
        stmt = stmt.where(PurchaseSupplier.supplier_id == supplier_id)
        count_stmt = count_stmt.where(PurchaseSupplier.supplier_id == supplier_id)

    total = (await db.execute(count_stmt)).scalar() or 0
    links = (
        await db.execute(stmt.order_by(PurchaseSupplier.purchase_id.desc(), PurchaseSupplier.id))
    ).scalars().all()
    return {
        "message": "Purchase suppliers fetched successfully",
        "total": total,
        "data": [PurchaseSupplierOut.model_validate(link) for link in links],
    }


async def get_purchase_supplier(db: AsyncSession, link_id: int) -> dict:
    link = await _get_link_or_404(db, link_id)
    return {"message": "Purchase supplier fetched successfully", "data": PurchaseSupplierOut.model_validate(link)}


# ---------------------------
# DELETE PURCHASE SUPPLIER
# ---------------------------
async def delete_purchase_supplier(db: AsyncSession, link_id: int, today: date, queue=None) -> dict:
    """Removes a supplier from a purchase together with its receipts."""
    link = await _get_link_or_404(db, link_id)
    purchase = (await db.execute(select(Purchase).where(Purchase.id == link.purchase_id))).scalars().first()

    receipts = (
        await db.execute(
            select(PurchaseReceipt).where(
                PurchaseReceipt.purchase_id == link.purchase_id,
                PurchaseReceipt.supplier_id == link.supplier_id,
            )
        )
    ).scalars().all()
    for receipt in receipts:
        await db.delete(receipt)
    await db.delete(link)
    await refresh_purchase_aggregates(db, purchase.id)
    await refresh_purchase_status(db, purchase, today)
    mark_recalculation_pending(db, month_key(purchase.date), reason=f"purchase supplier {link_id} deleted")
    await db.commit()
    if queue:
        queue.notify()
    return {"message": "Purchase supplier deleted successfully"}
