# receipt_tracker/services/purchase_service.py
"""Purchases and the receipts recorded against them.

New receipts are priced immediately against the month's total as it stands
without the purchase itself; the background recalculation then settles every
receipt of the supplier's month onto the tier the full total reaches.
"""
import logging
from datetime import date
from typing import Iterable, List, Optional, Set
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.constants import KARAT_21
from receipt_tracker.core.exceptions import ConflictError, NotFoundError, ValidationError
from receipt_tracker.models.purchase_models import Purchase, PurchaseReceipt, PurchaseStatus, PurchaseSupplier
from receipt_tracker.models.store_models import Store
from receipt_tracker.models.supplier_models import Supplier
from receipt_tracker.schemas.purchase_schemas import (
    PurchaseCreate,
    PurchaseOut,
    PurchaseReceiptCreate,
    PurchaseUpdate,
    ReceiptBulkCreate,
    ReceiptCreate,
    ReceiptOut,
)
from receipt_tracker.services.aggregate_service import refresh_purchase_aggregates
from receipt_tracker.services.discount_service import calculate_receipt_discount
from receipt_tracker.services.payment_service import refresh_purchase_status
from receipt_tracker.utils.decimal_utils import to_money
from receipt_tracker.utils.karat import to_21k_equivalent
from receipt_tracker.utils.months import month_bounds, month_key
from receipt_tracker.utils.recalculation_helpers import mark_recalculation_pending

logger = logging.getLogger(__name__)


async def load_purchase(db: AsyncSession, purchase_id: int) -> Optional[Purchase]:
    """Loads a purchase with fresh supplier, receipt and payment collections."""
    result = await db.execute(
        select(Purchase).where(Purchase.id == purchase_id).execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def get_purchase_or_404(db: AsyncSession, purchase_id: int) -> Purchase:
    purchase = await load_purchase(db, purchase_id)
    if not purchase:
        raise NotFoundError("Purchase not found")
    return purchase


async def _ensure_store(db: AsyncSession, store_id: int) -> None:
    store = (await db.execute(select(Store).where(Store.id == store_id))).scalars().first()
    if not store:
        raise NotFoundError(f"Store {store_id} not found")
    if not store.is_active:
        raise ValidationError(f"Store {store_id} is inactive")


async def _ensure_suppliers(db: AsyncSession, supplier_ids: Iterable[int]) -> None:
    wanted = set(supplier_ids)
    rows = (await db.execute(select(Supplier.id, Supplier.is_active).where(Supplier.id.in_(wanted)))).all()
    found = {row.id: row.is_active for row in rows}
    missing = sorted(wanted - set(found))
    if missing:
        raise NotFoundError(f"Supplier(s) not found: {', '.join(str(i) for i in missing)}")
    inactive = sorted(i for i, active in found.items() if not active)
    if inactive:
        raise ValidationError(f"Supplier(s) inactive: {', '.join(str(i) for i in inactive)}")


async def _used_receipt_numbers(db: AsyncSession, purchase_id: int, supplier_id: int) -> Set[int]:
    result = await db.execute(
        select(PurchaseReceipt.receipt_number).where(
            PurchaseReceipt.purchase_id == purchase_id,
            PurchaseReceipt.supplier_id == supplier_id,
        )
    )
    return set(result.scalars().all())


def _assign_receipt_numbers(receipts: List[ReceiptCreate], used: Set[int]) -> List[int]:
    """Explicit numbers must be unused; missing ones continue after the highest number in use."""
    taken = set(used)
    numbers: List[Optional[int]] = []
    for receipt in receipts:
        if receipt.receipt_number is not None:
            if receipt.receipt_number in taken:
                raise ConflictError(f"Receipt number {receipt.receipt_number} already exists for this supplier")
            taken.add(receipt.receipt_number)
        numbers.append(receipt.receipt_number)

    next_number = max(taken, default=0) + 1
    assigned = []
    for number in numbers:
        if number is None:
            number = next_number
            next_number += 1
        assigned.append(number)
    return assigned


async def _add_supplier_receipts(
    db: AsyncSession,
    purchase: Purchase,
    supplier_id: int,
    receipts: List[ReceiptCreate],
) -> List[PurchaseReceipt]:
    month = month_key(purchase.date)

    link = (
        await db.execute(
            select(PurchaseSupplier).where(
                PurchaseSupplier.purchase_id == purchase.id,
                PurchaseSupplier.supplier_id == supplier_id,
            )
        )
    ).scalars().first()
    if not link:
        db.add(PurchaseSupplier(purchase_id=purchase.id, supplier_id=supplier_id))

    numbers = _assign_receipt_numbers(receipts, await _used_receipt_numbers(db, purchase.id, supplier_id))

    rows = []
    for data, number in zip(receipts, numbers):
        grams_21k_equivalent = to_21k_equivalent(data.grams_18k, data.grams_21k)
        discount = await calculate_receipt_discount(
            db,
            supplier_id,
            grams_21k_equivalent,
            KARAT_21,
            month,
            purchase_id=purchase.id,
            base_fee=data.base_fees,
        )
        if discount.degraded:
            logger.warning("Receipt %s of purchase %s recorded without discount: %s", number, purchase.id, discount.error)
        row = PurchaseReceipt(
            purchase_id=purchase.id,
            supplier_id=supplier_id,
            receipt_number=number,
            grams_18k=data.grams_18k,
            grams_21k=data.grams_21k,
            total_grams_21k=grams_21k_equivalent,
            base_fees=discount.base_fee,
            discount_rate=discount.rate,
            discount_amount=discount.amount,
            net_fees=to_money(discount.base_fee - discount.amount),
        )
        db.add(row)
        rows.append(row)

    mark_recalculation_pending(db, month, supplier_id, reason=f"receipts added to purchase {purchase.id}")
    return rows


async def _commit(db: AsyncSession, conflict_message: str) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(conflict_message)


# ---------------------------
# CREATE PURCHASE
# ---------------------------
async def create_purchase(db: AsyncSession, data: PurchaseCreate, today: date, queue=None) -> dict:
    await _ensure_store(db, data.store_id)
    await _ensure_suppliers(db, [s.supplier_id for s in data.suppliers])
    if data.due_date and data.due_date < data.date:
        raise ValidationError("due_date cannot be before the purchase date")

    purchase = Purchase(store_id=data.store_id, date=data.date, due_date=data.due_date, status=PurchaseStatus.PENDING)
    db.add(purchase)
    await db.flush()

    for supplier in data.suppliers:
        await _add_supplier_receipts(db, purchase, supplier.supplier_id, supplier.receipts)

    await refresh_purchase_aggregates(db, purchase.id)
    await refresh_purchase_status(db, purchase, today)
    await _commit(db, "Purchase conflicts with existing receipts")
    if queue:
        queue.notify()

    purchase = await load_purchase(db, purchase.id)
    logger.info("Created purchase %s with %s receipts", purchase.id, len(purchase.receipts))
    return {"message": "Purchase created successfully", "data": PurchaseOut.model_validate(purchase)}


# ---------------------------
# ADD RECEIPTS TO PURCHASE
# ---------------------------
async def add_receipts_to_purchase(
    db: AsyncSession,
    purchase_id: int,
    supplier_id: int,
    data: ReceiptBulkCreate,
    today: date,
    queue=None,
) -> dict:
    purchase = await get_purchase_or_404(db, purchase_id)
    await _ensure_suppliers(db, [supplier_id])

    rows = await _add_supplier_receipts(db, purchase, supplier_id, data.receipts)
    await refresh_purchase_aggregates(db, purchase.id)
    await refresh_purchase_status(db, purchase, today)
    await _commit(db, "Receipt number already exists for this supplier")
    if queue:
        queue.notify()

    purchase = await load_purchase(db, purchase_id)
    return {
        "message": f"{len(rows)} receipts added successfully",
        "data": PurchaseOut.model_validate(purchase),
    }


async def create_receipt(db: AsyncSession, data: PurchaseReceiptCreate, today: date, queue=None) -> dict:
    purchase = await get_purchase_or_404(db, data.purchase_id)
    await _ensure_suppliers(db, [data.supplier_id])

    receipt = ReceiptCreate(**data.model_dump(exclude={"purchase_id", "supplier_id"}))
    (row,) = await _add_supplier_receipts(db, purchase, data.supplier_id, [receipt])
    await refresh_purchase_aggregates(db, purchase.id)
    await refresh_purchase_status(db, purchase, today)
    await _commit(db, "Receipt number already exists for this supplier")
    if queue:
        queue.notify()

    await db.refresh(row)
    return {"message": "Purchase receipt created successfully", "data": ReceiptOut.model_validate(row)}


# ---------------------------
# LIST PURCHASES
# ---------------------------
async def get_all_purchases(
    db: AsyncSession,
    store_id: int = None,
    supplier_id: int = None,
    status: PurchaseStatus = None,
    month: str = None,
    page: int = 1,
    page_size: int = 20,
) -> dict:
    stmt = select(Purchase)
    count_stmt = select(func.count(Purchase.id))
    conditions = []
    if store_id is not None:
        conditions.append(Purchase.store_id == store_id)
    if status is not None:
        conditions.append(Purchase.status == status)
    if month:
        start, end = month_bounds(month)
        conditions.extend([Purchase.date >= start, Purchase.date < end])
    if supplier_id is not None:
        conditions.append(
            Purchase.id.in_(select(PurchaseSupplier.purchase_id).where(PurchaseSupplier.supplier_id == supplier_id))
        )
    if conditions:
        stmt = stmt.where(*conditions)
        count_stmt = count_stmt.where(*conditions)

    total = (await db.execute(count_stmt)).scalar() or 0
    stmt = (
        stmt.order_by(Purchase.date.desc(), Purchase.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .execution_options(populate_existing=True)
    )
    purchases = (await db.execute(stmt)).scalars().all()
    return {
        "message": "Purchases fetched successfully",
        "total": total,
        "data": [PurchaseOut.model_validate(p) for p in purchases],
    }


async def get_purchase(db: AsyncSession, purchase_id: int) -> dict:
    purchase = await get_purchase_or_404(db, purchase_id)
    return {"message": "Purchase fetched successfully", "data": PurchaseOut.model_validate(purchase)}


# ---------------------------
# UPDATE PURCHASE
# ---------------------------
async def update_purchase(db: AsyncSession, purchase_id: int, data: PurchaseUpdate, today: date, queue=None) -> dict:
    purchase = await get_purchase_or_404(db, purchase_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("store_id") is not None and changes["store_id"] != purchase.store_id:
        await _ensure_store(db, changes["store_id"])
    if "date" in changes and changes["date"] is None:
        raise ValidationError("date cannot be null")

    new_date = changes.get("date", purchase.date)
    new_due = changes.get("due_date", purchase.due_date)
    if new_due and new_due < new_date:
        raise ValidationError("due_date cannot be before the purchase date")

    old_month = month_key(purchase.date)
    new_month = month_key(new_date)

    for key, value in changes.items():
        setattr(purchase, key, value)

    # Receipts follow their purchase into the new month
    moved = old_month != new_month
    if moved:
        mark_recalculation_pending(db, old_month, reason=f"purchase {purchase.id} moved to {new_month}")
        mark_recalculation_pending(db, new_month, reason=f"purchase {purchase.id} moved from {old_month}")

    await refresh_purchase_status(db, purchase, today)
    await db.commit()
    if moved and queue:
        queue.notify()

    purchase = await load_purchase(db, purchase_id)
    return {"message": "Purchase updated successfully", "data": PurchaseOut.model_validate(purchase)}


# ---------------------------
# DELETE PURCHASE
# ---------------------------
async def delete_purchase(db: AsyncSession, purchase_id: int, queue=None) -> dict:
    purchase = await get_purchase_or_404(db, purchase_id)
    month = month_key(purchase.date)

    await db.delete(purchase)
    mark_recalculation_pending(db, month, reason=f"purchase {purchase_id} deleted")
    await db.commit()
    if queue:
        queue.notify()

    logger.info("Deleted purchase %s, recalculation queued for %s", purchase_id, month)
    return {"message": "Purchase deleted successfully"}

