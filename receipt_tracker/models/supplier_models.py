# receipt_tracker/models/supplier_models.py
from decimal import Decimal
from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, DateTime, Numeric,
    CheckConstraint, UniqueConstraint, Index, func
)
from sqlalchemy.orm import relationship
from receipt_tracker.core.db import Base


class Supplier(Base):
    __tablename__ = "suppliers"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(255), nullable=False, unique=True, index=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    discount_tiers = relationship(
        "DiscountTier",
        back_populates="supplier",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DiscountTier.threshold",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Supplier(id={self.id}, code='{self.code}')>"


class DiscountTier(Base):
    __tablename__ = "discount_tiers"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True)
    karat_type = Column(String(2), nullable=False, default="21")
    name = Column(String(100), nullable=False)
    threshold = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    discount_percentage = Column(Numeric(6, 4), nullable=False, default=Decimal("0.0000"))
    is_protected = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    supplier = relationship("Supplier", back_populates="discount_tiers", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("supplier_id", "karat_type", "threshold", name="uq_discount_tier_threshold"),
        CheckConstraint(threshold >= 0, name="check_tier_threshold_non_negative"),
        CheckConstraint(
            (discount_percentage >= 0) & (discount_percentage <= 1),
            name="check_tier_percentage_fraction",
        ),
        CheckConstraint(karat_type.in_(["18", "21"]), name="check_tier_karat_type"),
        Index("ix_discount_tier_supplier_karat", "supplier_id", "karat_type"),
    )

    def __repr__(self):
        return (
            f"<DiscountTier(id={self.id}, supplier_id={self.supplier_id}, "
            f"threshold={self.threshold}, rate={self.discount_percentage})>"
        )
