# receipt_tracker/services/discount_service.py
import logging
from decimal import Decimal
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.config import BASE_FEE_PER_GRAM
from receipt_tracker.core.constants import KARAT_21, ZERO
from receipt_tracker.models.supplier_models import DiscountTier
from receipt_tracker.schemas.discount_schemas import DiscountResult
from receipt_tracker.services.monthly_total_service import tier_basis_total
from receipt_tracker.utils.decimal_utils import to_decimal, to_money, to_rate
from receipt_tracker.utils.karat import grams_to_21k
from receipt_tracker.utils.tiers import NO_DISCOUNT, TierSchedule, build_schedule, discount_for_fee, resolve_tier

logger = logging.getLogger(__name__)


def default_base_fee(grams_21k_equivalent) -> Decimal:
    return to_money(to_decimal(grams_21k_equivalent) * BASE_FEE_PER_GRAM)


async def load_tier_schedule(db: AsyncSession, supplier_id: int, karat_type: str = KARAT_21) -> TierSchedule:
    result = await db.execute(
        select(DiscountTier.threshold, DiscountTier.discount_percentage).where(
            DiscountTier.supplier_id == supplier_id,
            DiscountTier.karat_type == karat_type,
        )
    )
    return build_schedule(result.all())


def price_receipt(schedule: TierSchedule, monthly_total, grams_21k_equivalent, base_fee=None) -> DiscountResult:
    """Price one receipt against a tier schedule and a monthly total. No I/O."""
    fee = to_money(base_fee) if base_fee is not None else default_base_fee(grams_21k_equivalent)
    match = resolve_tier(schedule, monthly_total)
    rate = to_rate(match.rate)
    amount, _net = discount_for_fee(fee, rate)
    return DiscountResult(
        rate=rate,
        amount=amount,
        rank=match.rank,
        monthly_total=to_decimal(monthly_total),
        base_fee=fee,
        grams_21k_equivalent=to_decimal(grams_21k_equivalent),
    )


async def calculate_receipt_discount(
    db: AsyncSession,
    supplier_id: int,
    grams,
    karat_type: str,
    month: str,
    purchase_id: Optional[int] = None,
    base_fee=None,
) -> DiscountResult:
    """Price a receipt that is about to be recorded.

    ``purchase_id`` is left out of the monthly total so a purchase being
    created or extended is not counted twice. Lookup failures degrade to no
    discount and are flagged on the result instead of raised.
    """
    grams_21k = grams_to_21k(grams, karat_type)
    try:
        monthly_total = await tier_basis_total(db, supplier_id, month, exclude_purchase_id=purchase_id)
        schedule = await load_tier_schedule(db, supplier_id)
        return price_receipt(schedule, monthly_total, grams_21k, base_fee)
    except Exception as e:
        logger.exception("Discount lookup failed for supplier %s in %s, applying no discount", supplier_id, month)
        fee = to_money(base_fee) if base_fee is not None else default_base_fee(grams_21k)
        return DiscountResult(
            rate=to_rate(ZERO),
            amount=to_money(ZERO),
            rank=NO_DISCOUNT.rank,
            monthly_total=ZERO,
            base_fee=fee,
            grams_21k_equivalent=grams_21k,
            degraded=True,
            error=str(e),
        )
