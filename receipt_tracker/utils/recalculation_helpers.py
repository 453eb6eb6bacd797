# receipt_tracker/utils/recalculation_helpers.py
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from receipt_tracker.core.config import MONTHLY_TOTAL_SCOPE
from receipt_tracker.models.recalculation_models import PendingRecalculation


def mark_recalculation_pending(
    db: AsyncSession,
    month: str,
    supplier_id: Optional[int] = None,
    reason: str = "",
    volume_changed: bool = True,
) -> PendingRecalculation:
    """
    Adds a recalculation marker to the session. The caller is responsible for the commit,
    so the marker lands in the same transaction as the mutation that requires it.

    With a global monthly total every supplier of the month shares one total, so a
    change in grams is widened to the whole month. Tier changes (``volume_changed=False``)
    only reprice their own supplier.
    """
    if volume_changed and MONTHLY_TOTAL_SCOPE == "global":
        supplier_id = None
    marker = PendingRecalculation(month=month, supplier_id=supplier_id, reason=reason[:255], attempts=0)
    db.add(marker)
    return marker
