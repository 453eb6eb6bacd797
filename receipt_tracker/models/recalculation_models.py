# receipt_tracker/models/recalculation_models.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Index, func
from receipt_tracker.core.db import Base


class PendingRecalculation(Base):
    """A discount recalculation that still has to run.

    Written in the same transaction as the mutation that invalidated the
    discounts, deleted once the recalculation commits. ``supplier_id`` NULL
    means every supplier of the month.
    """
    __tablename__ = "pending_recalculations"

    id = Column(Integer, primary_key=True, index=True)
    month = Column(String(7), nullable=False)
    # No FK: the marker must survive the deletion of what it points at
    supplier_id = Column(Integer, nullable=True)
    reason = Column(String(255), nullable=False, default="")
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_pending_recalc_month_supplier", "month", "supplier_id"),
    )

    def __repr__(self):
        return f"<PendingRecalculation(month='{self.month}', supplier_id={self.supplier_id}, attempts={self.attempts})>"
