# receipt_tracker/services/payment_service.py
import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.exceptions import NotFoundError, ValidationError
from receipt_tracker.models.payment_models import Payment
from receipt_tracker.models.purchase_models import Purchase, PurchaseStatus
from receipt_tracker.schemas.payment_schemas import PaymentCreate, PaymentOut, PaymentUpdate, PurchaseBalance
from receipt_tracker.utils.decimal_utils import compute_balance, to_decimal, to_money, to_stored_grams
from receipt_tracker.utils.karat import grams_to_21k

logger = logging.getLogger(__name__)


def calculate_purchase_status(total_net_fees, total_paid, due_date: Optional[date], today: date) -> PurchaseStatus:
    """Paid once fees are covered; otherwise Overdue past the due date, else Partial or Pending."""
    if to_money(total_paid) >= to_money(total_net_fees):
        return PurchaseStatus.PAID
    is_overdue = due_date is not None and due_date < today
    if is_overdue:
        return PurchaseStatus.OVERDUE
    if to_money(total_paid) > Decimal("0.00"):
        return PurchaseStatus.PARTIAL
    return PurchaseStatus.PENDING


async def _get_purchase_or_404(db: AsyncSession, purchase_id: int) -> Purchase:
    purchase = (await db.execute(select(Purchase).where(Purchase.id == purchase_id))).scalars().first()
    if not purchase:
        raise NotFoundError("Purchase not found")
    return purchase


async def total_fees_paid(db: AsyncSession, purchase_id: int) -> Decimal:
    total = (
        await db.execute(
            select(func.coalesce(func.sum(Payment.fees_paid), 0)).where(Payment.purchase_id == purchase_id)
        )
    ).scalar()
    return to_money(total)


async def refresh_purchase_status(db: AsyncSession, purchase: Purchase, today: date) -> PurchaseStatus:
    """Recomputes and sets the purchase status. The caller is responsible for the commit."""
    await db.flush()
    paid = await total_fees_paid(db, purchase.id)
    purchase.status = calculate_purchase_status(purchase.total_net_fees, paid, purchase.due_date, today)
    return purchase.status


# ---------------------------
# CREATE PAYMENT
# ---------------------------
async def create_payment(db: AsyncSession, data: PaymentCreate, today: date) -> dict:
    purchase = await _get_purchase_or_404(db, data.purchase_id)

    if data.fees_paid > 0:
        balance = compute_balance(purchase.total_net_fees, await total_fees_paid(db, purchase.id))
        if to_money(data.fees_paid) > balance:
            raise ValidationError(
                f"Payment exceeds balance due. Balance: {balance}, attempted: {to_money(data.fees_paid)}"
            )

    payment = Payment(**data.model_dump())
    db.add(payment)
    status = await refresh_purchase_status(db, purchase, today)
    await db.commit()
    await db.refresh(payment)

    logger.info("Recorded payment %s for purchase %s, status now %s", payment.id, purchase.id, status.value)
    return {"message": "Payment created successfully", "data": PaymentOut.model_validate(payment)}


# ---------------------------
# LIST / GET PAYMENTS
# ---------------------------
async def get_all_payments(
    db: AsyncSession,
    purchase_id: int = None,
    karat_type: str = None,
    limit: int = 100,
    offset: int = 0,
) -> dict:
    stmt = select(Payment)
    count_stmt = select(func.count(Payment.id))
    if purchase_id is not None:
        stmt = stmt.where(Payment.purchase_id == purchase_id)
        count_stmt = count_stmt.where(Payment.purchase_id == purchase_id)
    if karat_type:
        stmt = stmt.where(Payment.karat_type == karat_type)
        count_stmt = count_stmt.where(Payment.karat_type == karat_type)

    total = (await db.execute(count_stmt)).scalar() or 0
    payments = (
        await db.execute(stmt.order_by(Payment.date.desc(), Payment.id.desc()).limit(limit).offset(offset))
    ).scalars().all()
    return {
        "message": "Payments fetched successfully",
        "total": total,
        "data": [PaymentOut.model_validate(p) for p in payments],
    }


async def get_purchase_payments(db: AsyncSession, purchase_id: int) -> dict:
    await _get_purchase_or_404(db, purchase_id)
    return await get_all_payments(db, purchase_id=purchase_id, limit=1000)


async def get_payment(db: AsyncSession, payment_id: int) -> dict:
    payment = (await db.execute(select(Payment).where(Payment.id == payment_id))).scalars().first()
    if not payment:
        raise NotFoundError("Payment not found")
    return {"message": "Payment fetched successfully", "data": PaymentOut.model_validate(payment)}


# ---------------------------
# UPDATE PAYMENT
# ---------------------------
async def update_payment(db: AsyncSession, payment_id: int, data: PaymentUpdate, today: date) -> dict:
    payment = (await db.execute(select(Payment).where(Payment.id == payment_id))).scalars().first()
    if not payment:
        raise NotFoundError("Payment not found")

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    grams_paid = to_decimal(changes.get("grams_paid", payment.grams_paid))
    fees_paid = to_money(changes.get("fees_paid", payment.fees_paid))
    if grams_paid <= 0 and fees_paid <= 0:
        raise ValidationError("A payment needs grams_paid or fees_paid greater than zero")

    purchase = await _get_purchase_or_404(db, payment.purchase_id)
    if "fees_paid" in changes:
        paid_elsewhere = await total_fees_paid(db, purchase.id) - to_money(payment.fees_paid)
        balance = compute_balance(purchase.total_net_fees, paid_elsewhere)
        if fees_paid > balance:
            raise ValidationError(f"Payment exceeds balance due. Balance: {balance}, attempted: {fees_paid}")

    for key, value in changes.items():
        setattr(payment, key, value)

    status = await refresh_purchase_status(db, purchase, today)
    await db.commit()
    await db.refresh(payment)

    logger.info("Updated payment %s for purchase %s, status now %s", payment.id, purchase.id, status.value)
    return {"message": "Payment updated successfully", "data": PaymentOut.model_validate(payment)}


# ---------------------------
# DELETE PAYMENT
# ---------------------------
async def delete_payment(db: AsyncSession, payment_id: int, today: date) -> dict:
    payment = (await db.execute(select(Payment).where(Payment.id == payment_id))).scalars().first()
    if not payment:
        raise NotFoundError("Payment not found")

    purchase = await _get_purchase_or_404(db, payment.purchase_id)
    await db.delete(payment)
    await refresh_purchase_status(db, purchase, today)
    await db.commit()
    return {"message": "Payment deleted successfully"}


# ---------------------------
# PURCHASE BALANCE
# ---------------------------
async def get_purchase_balance(db: AsyncSession, purchase_id: int) -> dict:
    purchase = await _get_purchase_or_404(db, purchase_id)
    fees_paid = await total_fees_paid(db, purchase_id)

    rows = (
        await db.execute(select(Payment.grams_paid, Payment.karat_type).where(Payment.purchase_id == purchase_id))
    ).all()
    grams_paid_21k = to_stored_grams(sum((grams_to_21k(grams, karat) for grams, karat in rows), Decimal("0")))
    grams_due = to_stored_grams(to_decimal(purchase.total_grams_21k_equivalent) - grams_paid_21k)

    balance = PurchaseBalance(
        purchase_id=purchase.id,
        status=purchase.status,
        total_net_fees=to_money(purchase.total_net_fees),
        total_fees_paid=fees_paid,
        balance_due=compute_balance(purchase.total_net_fees, fees_paid),
        total_grams_21k_equivalent=to_stored_grams(purchase.total_grams_21k_equivalent),
        total_grams_paid_21k=grams_paid_21k,
        grams_due=max(grams_due, to_stored_grams(0)),
    )
    return {"message": "Purchase balance fetched successfully", "data": balance}
