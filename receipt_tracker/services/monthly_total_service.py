# receipt_tracker/services/monthly_total_service.py
"""Monthly gram totals that drive tier resolution.

A receipt belongs to the month of its purchase's business date
(``Purchase.date``), never to the time it was recorded.
"""
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.config import MONTHLY_TOTAL_SCOPE
from receipt_tracker.models.purchase_models import Purchase, PurchaseReceipt
from receipt_tracker.schemas.discount_schemas import MonthSummary
from receipt_tracker.utils.decimal_utils import to_stored_grams
from receipt_tracker.utils.months import month_bounds, previous_month_keys


def _month_receipts_filter(stmt, month: str, supplier_id: Optional[int] = None, exclude_purchase_id: Optional[int] = None):
    start, end = month_bounds(month)
    stmt = stmt.join(Purchase, Purchase.id == PurchaseReceipt.purchase_id).where(
        Purchase.date >= start,
        Purchase.date < end,
    )
    if supplier_id is not None:
        stmt = stmt.where(PurchaseReceipt.supplier_id == supplier_id)
    if exclude_purchase_id is not None:
        stmt = stmt.where(PurchaseReceipt.purchase_id != exclude_purchase_id)
    return stmt


async def monthly_total(db: AsyncSession, month: str, exclude_purchase_id: Optional[int] = None) -> Decimal:
    """Sum of 21k-equivalent grams over every supplier's receipts in ``month``."""
    stmt = _month_receipts_filter(
        select(func.coalesce(func.sum(PurchaseReceipt.total_grams_21k), 0)),
        month,
        exclude_purchase_id=exclude_purchase_id,
    )
    return to_stored_grams((await db.execute(stmt)).scalar())


async def monthly_total_for_supplier(
    db: AsyncSession,
    supplier_id: int,
    month: str,
    exclude_purchase_id: Optional[int] = None,
) -> Decimal:
    stmt = _month_receipts_filter(
        select(func.coalesce(func.sum(PurchaseReceipt.total_grams_21k), 0)),
        month,
        supplier_id=supplier_id,
        exclude_purchase_id=exclude_purchase_id,
    )
    return to_stored_grams((await db.execute(stmt)).scalar())


async def tier_basis_total(
    db: AsyncSession,
    supplier_id: int,
    month: str,
    exclude_purchase_id: Optional[int] = None,
) -> Decimal:
    """The monthly total tiers are resolved against, per ``MONTHLY_TOTAL_SCOPE``."""
    if MONTHLY_TOTAL_SCOPE == "global":
        return await monthly_total(db, month, exclude_purchase_id=exclude_purchase_id)
    return await monthly_total_for_supplier(db, supplier_id, month, exclude_purchase_id=exclude_purchase_id)


async def month_summary(db: AsyncSession, month: str) -> MonthSummary:
    stmt = _month_receipts_filter(
        select(
            func.coalesce(func.sum(PurchaseReceipt.total_grams_21k), 0),
            func.count(func.distinct(PurchaseReceipt.purchase_id)),
            func.count(PurchaseReceipt.id),
        ),
        month,
    )
    total, purchase_count, receipt_count = (await db.execute(stmt)).one()
    return MonthSummary(
        month=month,
        total_grams_21k=to_stored_grams(total),
        purchase_count=purchase_count or 0,
        receipt_count=receipt_count or 0,
    )


async def monthly_history(db: AsyncSession, month: str, count: int = 6) -> List[MonthSummary]:
    """Summaries for the ``count`` months ending at ``month``, newest first."""
    return [await month_summary(db, key) for key in previous_month_keys(month, count)]
