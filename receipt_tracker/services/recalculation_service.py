# receipt_tracker/services/recalculation_service.py
"""Discount recalculation for a (supplier, month) unit, a whole month, or a purchase.

Every receipt of a unit is priced against one monthly total read at the
start of the run, so all receipts of a supplier in a month share the same
tier. Each unit commits in its own transaction, together with the re-summed
totals and payment status of every purchase it touched; a failed unit rolls
back and is reported, never raised. Callers pass ``today`` for the status.
"""
import asyncio
import logging
from datetime import date
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.config import RECALC_CONCURRENCY
from receipt_tracker.models.purchase_models import Purchase, PurchaseReceipt, PurchaseSupplier
from receipt_tracker.schemas.discount_schemas import MonthRecalculationResult, RecalculationResult
from receipt_tracker.services.aggregate_service import refresh_many_purchase_aggregates
from receipt_tracker.services.discount_service import load_tier_schedule, price_receipt
from receipt_tracker.services.monthly_total_service import tier_basis_total
from receipt_tracker.services.payment_service import refresh_purchase_status
from receipt_tracker.utils.decimal_utils import to_money
from receipt_tracker.utils.months import month_bounds, month_key

logger = logging.getLogger(__name__)

UnitKey = Tuple[str, Optional[int]]

_unit_locks: Dict[UnitKey, asyncio.Lock] = {}
_unit_lock_users: Dict[UnitKey, int] = defaultdict(int)


@asynccontextmanager
async def unit_lock(month: str, supplier_id: Optional[int]):
    """Serialises runs of the same (month, supplier) unit inside this process."""
    key = (month, supplier_id)
    lock = _unit_locks.setdefault(key, asyncio.Lock())
    _unit_lock_users[key] += 1
    try:
        async with lock:
            yield
    finally:
        _unit_lock_users[key] -= 1
        if _unit_lock_users[key] == 0:
            del _unit_lock_users[key]
            del _unit_locks[key]


async def _supplier_month_receipts(db: AsyncSession, supplier_id: int, month: str) -> List[PurchaseReceipt]:
    start, end = month_bounds(month)
    result = await db.execute(
        select(PurchaseReceipt)
        .join(Purchase, Purchase.id == PurchaseReceipt.purchase_id)
        .where(
            PurchaseReceipt.supplier_id == supplier_id,
            Purchase.date >= start,
            Purchase.date < end,
        )
        .order_by(PurchaseReceipt.created_at, PurchaseReceipt.id)
    )
    return list(result.scalars().all())


async def recalculate_supplier_discounts(session_factory, supplier_id: int, month: str, today: date) -> RecalculationResult:
    # Validates the month key before any I/O
    month_bounds(month)
    async with unit_lock(month, supplier_id):
        async with session_factory() as db:
            try:
                receipts = await _supplier_month_receipts(db, supplier_id, month)
                if not receipts:
                    return RecalculationResult(
                        success=True,
                        supplier_id=supplier_id,
                        month=month,
                        updated=0,
                        message="No receipts to recalculate",
                    )

                monthly_total = await tier_basis_total(db, supplier_id, month)
                schedule = await load_tier_schedule(db, supplier_id)

                for receipt in receipts:
                    priced = price_receipt(schedule, monthly_total, receipt.total_grams_21k, receipt.base_fees)
                    receipt.discount_rate = priced.rate
                    receipt.discount_amount = priced.amount
                    receipt.net_fees = to_money(priced.base_fee - priced.amount)

                purchases = await refresh_many_purchase_aggregates(db, [r.purchase_id for r in receipts])
                for purchase in purchases:
                    await refresh_purchase_status(db, purchase, today)
                await db.commit()

                logger.info(
                    "Recalculated %s receipts for supplier %s in %s (monthly total %s)",
                    len(receipts), supplier_id, month, monthly_total,
                )
                return RecalculationResult(
                    success=True,
                    supplier_id=supplier_id,
                    month=month,
                    updated=len(receipts),
                    message=f"Updated {len(receipts)} receipts",
                )
            except Exception as e:
                await db.rollback()
                logger.exception("Recalculation failed for supplier %s in %s", supplier_id, month)
                return RecalculationResult(
                    success=False,
                    supplier_id=supplier_id,
                    month=month,
                    message="Recalculation failed",
                    error=str(e),
                )


async def suppliers_with_receipts(db: AsyncSession, month: str) -> List[int]:
    start, end = month_bounds(month)
    result = await db.execute(
        select(PurchaseReceipt.supplier_id)
        .join(Purchase, Purchase.id == PurchaseReceipt.purchase_id)
        .where(Purchase.date >= start, Purchase.date < end)
        .distinct()
        .order_by(PurchaseReceipt.supplier_id)
    )
    return list(result.scalars().all())


async def recalculate_month_discounts(
    session_factory,
    month: str,
    today: date,
    concurrency: int = RECALC_CONCURRENCY,
) -> MonthRecalculationResult:
    async with session_factory() as db:
        supplier_ids = await suppliers_with_receipts(db, month)

    if not supplier_ids:
        return MonthRecalculationResult(success=True, month=month, message="No suppliers with receipts")

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def run(supplier_id: int) -> RecalculationResult:
        async with semaphore:
            return await recalculate_supplier_discounts(session_factory, supplier_id, month, today)

    results = await asyncio.gather(*(run(supplier_id) for supplier_id in supplier_ids))
    failed = [r for r in results if not r.success]
    return MonthRecalculationResult(
        success=not failed,
        month=month,
        total_updated=sum(r.updated for r in results),
        suppliers=list(results),
        message=(
            f"Recalculated {len(results)} suppliers"
            if not failed
            else f"{len(failed)} of {len(results)} suppliers failed"
        ),
    )


async def recalculate_purchase_discounts(session_factory, purchase_id: int, today: date) -> RecalculationResult:
    """Recalculates every supplier of the purchase in the purchase's month."""
    async with session_factory() as db:
        purchase_date = (
            await db.execute(select(Purchase.date).where(Purchase.id == purchase_id))
        ).scalar_one_or_none()
        if purchase_date is None:
            return RecalculationResult(success=False, month="", message="Purchase not found", error="Purchase not found")
        supplier_ids = set(
            (await db.execute(
                select(PurchaseSupplier.supplier_id).where(PurchaseSupplier.purchase_id == purchase_id)
            )).scalars().all()
        )
        supplier_ids.update(
            (await db.execute(
                select(PurchaseReceipt.supplier_id).where(PurchaseReceipt.purchase_id == purchase_id)
            )).scalars().all()
        )

    month = month_key(purchase_date)
    results = [
        await recalculate_supplier_discounts(session_factory, supplier_id, month, today)
        for supplier_id in sorted(supplier_ids)
    ]
    errors = [r.error for r in results if not r.success]
    return RecalculationResult(
        success=not errors,
        supplier_id=results[0].supplier_id if len(results) == 1 else None,
        month=month,
        updated=sum(r.updated for r in results),
        message=f"Recalculated {len(results)} suppliers for purchase {purchase_id}",
        error="; ".join(e for e in errors if e) or None,
    )
