# receipt_tracker/models/purchase_models.py
import enum
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, Date, ForeignKey, Numeric, DateTime, Enum,
    CheckConstraint, UniqueConstraint, Index, func
)
from sqlalchemy.orm import relationship
from receipt_tracker.core.db import Base


class PurchaseStatus(str, enum.Enum):
    PENDING = "Pending"
    PARTIAL = "Partial"
    PAID = "Paid"
    OVERDUE = "Overdue"


class Purchase(Base):
    __tablename__ = "purchases"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="RESTRICT"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    due_date = Column(Date, nullable=True)
    status = Column(Enum(PurchaseStatus, name="purchase_status"), default=PurchaseStatus.PENDING, nullable=False)

    # Derived from receipts, never written directly by callers
    total_grams_21k_equivalent = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_base_fees = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total_discount_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total_net_fees = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now())

    store = relationship("Store", back_populates="purchases", lazy="selectin")
    suppliers = relationship(
        "PurchaseSupplier",
        back_populates="purchase",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PurchaseSupplier.id",
        lazy="selectin",
    )
    receipts = relationship(
        "PurchaseReceipt",
        back_populates="purchase",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PurchaseReceipt.id",
        lazy="selectin",
    )
    payments = relationship(
        "Payment",
        back_populates="purchase",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Purchase(id={self.id}, date={self.date}, status='{self.status}')>"


class PurchaseSupplier(Base):
    __tablename__ = "purchase_suppliers"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False, index=True)

    total_grams_18k = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_grams_21k = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_grams_21k_equivalent = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_base_fees = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total_discount_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total_net_fees = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    receipt_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    purchase = relationship("Purchase", back_populates="suppliers")

    __table_args__ = (
        UniqueConstraint("purchase_id", "supplier_id", name="uq_purchase_supplier"),
    )

    def __repr__(self):
        return f"<PurchaseSupplier(purchase_id={self.purchase_id}, supplier_id={self.supplier_id})>"


class PurchaseReceipt(Base):
    __tablename__ = "purchase_receipts"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False, index=True)
    receipt_number = Column(Integer, nullable=False)

    grams_18k = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    grams_21k = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_grams_21k = Column(Numeric(12, 2), nullable=False)
    base_fees = Column(Numeric(14, 2), nullable=False)

    # Maintained by the recalculation service
    discount_rate = Column(Numeric(6, 4), nullable=False, default=Decimal("0.0000"))
    discount_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    net_fees = Column(Numeric(14, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    purchase = relationship("Purchase", back_populates="receipts")

    __table_args__ = (
        UniqueConstraint("purchase_id", "supplier_id", "receipt_number", name="uq_purchase_supplier_receipt"),
        CheckConstraint(grams_18k >= 0, name="check_receipt_grams_18k_non_negative"),
        CheckConstraint(grams_21k >= 0, name="check_receipt_grams_21k_non_negative"),
        CheckConstraint(base_fees >= 0, name="check_receipt_base_fees_non_negative"),
        Index("ix_receipt_supplier_purchase", "supplier_id", "purchase_id"),
    )

    def __repr__(self):
        return (
            f"<PurchaseReceipt(id={self.id}, purchase_id={self.purchase_id}, "
            f"supplier_id={self.supplier_id}, number={self.receipt_number})>"
        )
