"""Pure summation helpers for purchase and purchase-supplier totals."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List

from receipt_tracker.core.constants import ZERO
from receipt_tracker.utils.decimal_utils import to_decimal, to_money


@dataclass(frozen=True)
class ReceiptSummary:
    """The amounts of one receipt that roll up into purchase totals."""
    supplier_id: int
    grams_18k: Decimal
    grams_21k: Decimal
    total_grams_21k: Decimal
    base_fees: Decimal
    discount_amount: Decimal
    net_fees: Decimal


@dataclass(frozen=True)
class PurchaseTotals:
    total_grams_18k: Decimal = ZERO
    total_grams_21k: Decimal = ZERO
    total_grams_21k_equivalent: Decimal = ZERO
    total_base_fees: Decimal = ZERO
    total_discount_amount: Decimal = ZERO
    total_net_fees: Decimal = ZERO
    receipt_count: int = 0


def summarize_receipt(receipt) -> ReceiptSummary:
    """Adapter for a persisted ``PurchaseReceipt`` row."""
    return ReceiptSummary(
        supplier_id=receipt.supplier_id,
        grams_18k=to_decimal(receipt.grams_18k),
        grams_21k=to_decimal(receipt.grams_21k),
        total_grams_21k=to_decimal(receipt.total_grams_21k),
        base_fees=to_money(receipt.base_fees),
        discount_amount=to_money(receipt.discount_amount),
        net_fees=to_money(receipt.net_fees),
    )


def compute_purchase_totals(receipts: Iterable[ReceiptSummary]) -> PurchaseTotals:
    grams_18k = grams_21k = grams_equivalent = ZERO
    base_fees = discount = net_fees = ZERO
    count = 0
    for receipt in receipts:
        grams_18k += receipt.grams_18k
        grams_21k += receipt.grams_21k
        grams_equivalent += receipt.total_grams_21k
        base_fees += receipt.base_fees
        discount += receipt.discount_amount
        net_fees += receipt.net_fees
        count += 1
    return PurchaseTotals(
        total_grams_18k=grams_18k,
        total_grams_21k=grams_21k,
        total_grams_21k_equivalent=grams_equivalent,
        total_base_fees=base_fees,
        total_discount_amount=discount,
        total_net_fees=net_fees,
        receipt_count=count,
    )


def group_by_supplier(receipts: Iterable[ReceiptSummary]) -> Dict[int, List[ReceiptSummary]]:
    grouped: Dict[int, List[ReceiptSummary]] = {}
    for receipt in receipts:
        grouped.setdefault(receipt.supplier_id, []).append(receipt)
    return grouped


def compute_supplier_totals(receipts: Iterable[ReceiptSummary]) -> Dict[int, PurchaseTotals]:
    return {
        supplier_id: compute_purchase_totals(rows)
        for supplier_id, rows in group_by_supplier(receipts).items()
    }
