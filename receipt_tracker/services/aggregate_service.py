# receipt_tracker/services/aggregate_service.py
"""Persists purchase and purchase-supplier totals re-derived from receipt rows."""
from typing import Iterable, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.models.purchase_models import Purchase, PurchaseReceipt, PurchaseSupplier
from receipt_tracker.utils.aggregates import (
    PurchaseTotals,
    compute_purchase_totals,
    compute_supplier_totals,
    summarize_receipt,
)


def apply_supplier_totals(row: PurchaseSupplier, totals: PurchaseTotals) -> None:
    row.total_grams_18k = totals.total_grams_18k
    row.total_grams_21k = totals.total_grams_21k
    row.total_grams_21k_equivalent = totals.total_grams_21k_equivalent
    row.total_base_fees = totals.total_base_fees
    row.total_discount_amount = totals.total_discount_amount
    row.total_net_fees = totals.total_net_fees
    row.receipt_count = totals.receipt_count


def apply_purchase_totals(purchase: Purchase, totals: PurchaseTotals) -> None:
    purchase.total_grams_21k_equivalent = totals.total_grams_21k_equivalent
    purchase.total_base_fees = totals.total_base_fees
    purchase.total_discount_amount = totals.total_discount_amount
    purchase.total_net_fees = totals.total_net_fees


async def refresh_purchase_aggregates(db: AsyncSession, purchase_id: int) -> Optional[Purchase]:
    """
    Re-sums a purchase and each of its purchase-suppliers from the receipt rows.
    Always a full resum, never an increment, so running it twice changes nothing.
    The caller is responsible for the commit. Returns None when the purchase is gone.
    """
    await db.flush()
    purchase = (await db.execute(select(Purchase).where(Purchase.id == purchase_id))).scalars().first()
    if not purchase:
        return None

    receipts = (
        await db.execute(select(PurchaseReceipt).where(PurchaseReceipt.purchase_id == purchase_id))
    ).scalars().all()
    summaries = [summarize_receipt(r) for r in receipts]

    supplier_totals = compute_supplier_totals(summaries)
    supplier_rows = (
        await db.execute(select(PurchaseSupplier).where(PurchaseSupplier.purchase_id == purchase_id))
    ).scalars().all()
    for row in supplier_rows:
        apply_supplier_totals(row, supplier_totals.get(row.supplier_id, PurchaseTotals()))

    apply_purchase_totals(purchase, compute_purchase_totals(summaries))
    return purchase


async def refresh_many_purchase_aggregates(db: AsyncSession, purchase_ids: Iterable[int]) -> List[Purchase]:
    refreshed = []
    for purchase_id in sorted(set(purchase_ids)):
        purchase = await refresh_purchase_aggregates(db, purchase_id)
        if purchase is not None:
            refreshed.append(purchase)
    return refreshed
