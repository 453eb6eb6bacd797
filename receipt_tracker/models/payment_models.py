# receipt_tracker/models/payment_models.py
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Text, Date, ForeignKey, Numeric, DateTime, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from receipt_tracker.core.db import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    grams_paid = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    fees_paid = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    karat_type = Column(String(2), nullable=False, default="21")
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    purchase = relationship("Purchase", back_populates="payments")

    __table_args__ = (
        CheckConstraint(grams_paid >= 0, name="check_payment_grams_non_negative"),
        CheckConstraint(fees_paid >= 0, name="check_payment_fees_non_negative"),
    )

    def __repr__(self):
        return f"<Payment(id={self.id}, purchase_id={self.purchase_id}, fees_paid={self.fees_paid})>"
