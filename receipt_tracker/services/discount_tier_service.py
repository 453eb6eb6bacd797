# receipt_tracker/services/discount_tier_service.py
"""Discount tier CRUD.

Any tier change alters the discounts of the supplier's current month, so
every mutation writes a recalculation marker in the same transaction and
wakes the background queue after committing.
"""
import logging
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from receipt_tracker.models.supplier_models import DiscountTier
from receipt_tracker.schemas.discount_tier_schemas import DiscountTierCreate, DiscountTierOut, DiscountTierUpdate
from receipt_tracker.services.supplier_service import get_supplier_or_404
from receipt_tracker.utils.recalculation_helpers import mark_recalculation_pending

logger = logging.getLogger(__name__)


async def _get_tier_or_404(db: AsyncSession, tier_id: int) -> DiscountTier:
    tier = (await db.execute(select(DiscountTier).where(DiscountTier.id == tier_id))).scalars().first()
    if not tier:
        raise NotFoundError("Discount tier not found")
    return tier


async def _ensure_threshold_free(db: AsyncSession, supplier_id: int, karat_type: str, threshold, exclude_id: int = None) -> None:
    stmt = select(DiscountTier.id).where(
        DiscountTier.supplier_id == supplier_id,
        DiscountTier.karat_type == karat_type,
        DiscountTier.threshold == threshold,
    )
    if exclude_id is not None:
        stmt = stmt.where(DiscountTier.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise ConflictError(f"Supplier already has a {karat_type}k tier at threshold {threshold}")


async def _commit_and_notify(db: AsyncSession, queue) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Discount tier conflicts with an existing tier")
    if queue:
        queue.notify()


# ---------------------------
# CREATE TIER
# ---------------------------
async def create_discount_tier(db: AsyncSession, data: DiscountTierCreate, month: str, queue=None) -> dict:
    await get_supplier_or_404(db, data.supplier_id)
    await _ensure_threshold_free(db, data.supplier_id, data.karat_type, data.threshold)

    tier = DiscountTier(**data.model_dump())
    db.add(tier)
    mark_recalculation_pending(db, month, data.supplier_id, reason="discount tier created", volume_changed=False)
    await _commit_and_notify(db, queue)

    await db.refresh(tier)
    logger.info("Created discount tier %s for supplier %s", tier.id, tier.supplier_id)
    return {"message": "Discount tier created successfully", "data": DiscountTierOut.model_validate(tier)}


# ---------------------------
# LIST / GET TIERS
# ---------------------------
async def get_all_discount_tiers(db: AsyncSession, supplier_id: int = None, karat_type: str = None) -> dict:
    stmt = select(DiscountTier)
    if supplier_id is not None:
        stmt = stmt.where(DiscountTier.supplier_id == supplier_id)
    if karat_type:
        stmt = stmt.where(DiscountTier.karat_type == karat_type)
    stmt = stmt.order_by(DiscountTier.supplier_id, DiscountTier.karat_type, DiscountTier.threshold)
    tiers = (await db.execute(stmt)).scalars().all()
    return {
        "message": "Discount tiers fetched successfully",
        "total": len(tiers),
        "data": [DiscountTierOut.model_validate(t) for t in tiers],
    }


async def get_supplier_discount_tiers(db: AsyncSession, supplier_id: int) -> dict:
    await get_supplier_or_404(db, supplier_id)
    return await get_all_discount_tiers(db, supplier_id=supplier_id)


async def get_discount_tier(db: AsyncSession, tier_id: int) -> dict:
    tier = await _get_tier_or_404(db, tier_id)
    return {"message": "Discount tier fetched successfully", "data": DiscountTierOut.model_validate(tier)}


# ---------------------------
# UPDATE TIER
# ---------------------------
async def update_discount_tier(db: AsyncSession, tier_id: int, data: DiscountTierUpdate, month: str, queue=None) -> dict:
    tier = await _get_tier_or_404(db, tier_id)
    changes = data.model_dump(exclude_unset=True)

    karat_type = changes.get("karat_type", tier.karat_type)
    threshold = changes.get("threshold", tier.threshold)
    if "karat_type" in changes or "threshold" in changes:
        await _ensure_threshold_free(db, tier.supplier_id, karat_type, threshold, exclude_id=tier.id)

    for key, value in changes.items():
        setattr(tier, key, value)

    mark_recalculation_pending(
        db, month, tier.supplier_id, reason=f"discount tier {tier.id} updated", volume_changed=False
    )
    await _commit_and_notify(db, queue)

    await db.refresh(tier)
    return {"message": "Discount tier updated successfully", "data": DiscountTierOut.model_validate(tier)}


# ---------------------------
# DELETE TIER
# ---------------------------
async def delete_discount_tier(db: AsyncSession, tier_id: int, month: str, queue=None) -> dict:
    tier = await _get_tier_or_404(db, tier_id)
    if tier.is_protected:
        raise ForbiddenError("Cannot delete protected discount tier")

    supplier_id = tier.supplier_id
    await db.delete(tier)
    mark_recalculation_pending(
        db, month, supplier_id, reason=f"discount tier {tier_id} deleted", volume_changed=False
    )
    await _commit_and_notify(db, queue)
    return {"message": "Discount tier deleted successfully"}
