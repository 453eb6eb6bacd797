# receipt_tracker/services/receipt_service.py
from datetime import date
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.exceptions import NotFoundError, ValidationError
from receipt_tracker.models.purchase_models import Purchase, PurchaseReceipt
from receipt_tracker.schemas.purchase_schemas import ReceiptOut, ReceiptUpdate
from receipt_tracker.services.aggregate_service import refresh_purchase_aggregates
from receipt_tracker.services.payment_service import refresh_purchase_status
from receipt_tracker.utils.decimal_utils import to_decimal, to_money
from receipt_tracker.utils.karat import to_21k_equivalent
from receipt_tracker.utils.months import month_key
from receipt_tracker.utils.recalculation_helpers import mark_recalculation_pending
from receipt_tracker.utils.tiers import discount_for_fee


async def _get_receipt_or_404(db: AsyncSession, receipt_id: int) -> PurchaseReceipt:
    receipt = (await db.execute(select(PurchaseReceipt).where(PurchaseReceipt.id == receipt_id))).scalars().first()
    if not receipt:
        raise NotFoundError("Purchase receipt not found")
    return receipt


async def _get_purchase(db: AsyncSession, purchase_id: int) -> Purchase:
    return (await db.execute(select(Purchase).where(Purchase.id == purchase_id))).scalars().first()


async def get_all_receipts(
    db: AsyncSession,
    purchase_id: int = None,
    supplier_id: int = None,
    limit: int = 100,
    offset: int = 0,
) -> dict:
    stmt = select(PurchaseReceipt)
    count_stmt = select(func.count(PurchaseReceipt.id))
    if purchase_id is not None:
        stmt = stmt.where(PurchaseReceipt.purchase_id == purchase_id)
        count_stmt = count_stmt.where(PurchaseReceipt.purchase_id == purchase_id)
    if supplier_id is not None:
        stmt = stmt.where(PurchaseReceipt.supplier_id == supplier_id)
        count_stmt = count_stmt.where(PurchaseReceipt.supplier_id == supplier_id)

    total = (await db.execute(count_stmt)).scalar() or 0
    receipts = (
        await db.execute(
            stmt.order_by(PurchaseReceipt.purchase_id.desc(), PurchaseReceipt.supplier_id, PurchaseReceipt.receipt_number)
            .limit(limit)
            .offset(offset)
        )
    ).scalars().all()
    return {
        "message": "Purchase receipts fetched successfully",
        "total": total,
        "data": [ReceiptOut.model_validate(r) for r in receipts],
    }


async def get_receipt(db: AsyncSession, receipt_id: int) -> dict:
    receipt = await _get_receipt_or_404(db, receipt_id)
    return {"message": "Purchase receipt fetched successfully", "data": ReceiptOut.model_validate(receipt)}


# ---------------------------
# UPDATE RECEIPT
# ---------------------------
async def update_receipt(db: AsyncSession, receipt_id: int, data: ReceiptUpdate, today: date, queue=None) -> dict:
    """
    Edits weights or base fee. The stored base fee is kept unless the request
    sets one. The receipt keeps its current rate until the queued
    recalculation prices it against the updated monthly total.
    """
    receipt = await _get_receipt_or_404(db, receipt_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    grams_18k = changes.get("grams_18k", receipt.grams_18k)
    grams_21k = changes.get("grams_21k", receipt.grams_21k)
    if to_decimal(grams_18k) <= 0 and to_decimal(grams_21k) <= 0:
        raise ValidationError("A receipt needs grams_18k or grams_21k greater than zero")

    receipt.grams_18k = grams_18k
    receipt.grams_21k = grams_21k
    receipt.total_grams_21k = to_21k_equivalent(grams_18k, grams_21k)

    if "base_fees" in changes:
        receipt.base_fees = to_money(changes["base_fees"])

    amount, net = discount_for_fee(receipt.base_fees, receipt.discount_rate)
    receipt.discount_amount = amount
    receipt.net_fees = net

    purchase = await _get_purchase(db, receipt.purchase_id)
    await refresh_purchase_aggregates(db, purchase.id)
    await refresh_purchase_status(db, purchase, today)
    mark_recalculation_pending(
        db, month_key(purchase.date), receipt.supplier_id, reason=f"receipt {receipt.id} updated"
    )
    await db.commit()
    if queue:
        queue.notify()

    await db.refresh(receipt)
    return {"message": "Purchase receipt updated successfully", "data": ReceiptOut.model_validate(receipt)}


# ---------------------------
# DELETE RECEIPT
# ---------------------------
async def delete_receipt(db: AsyncSession, receipt_id: int, today: date, queue=None) -> dict:
    receipt = await _get_receipt_or_404(db, receipt_id)
    purchase = await _get_purchase(db, receipt.purchase_id)

    await db.delete(receipt)
    await refresh_purchase_aggregates(db, purchase.id)
    await refresh_purchase_status(db, purchase, today)
    mark_recalculation_pending(db, month_key(purchase.date), reason=f"receipt {receipt_id} deleted")
    await db.commit()
    if queue:
        queue.notify()
    return {"message": "Purchase receipt deleted successfully"}
