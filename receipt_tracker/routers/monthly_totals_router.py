# receipt_tracker/routers/monthly_totals_router.py
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.db import get_db
from receipt_tracker.routers.deps import get_current_month
from receipt_tracker.schemas.discount_schemas import (
    DiscountRequest,
    DiscountResponse,
    MonthHistoryResponse,
    MonthlyTotal,
    MonthlyTotalResponse,
    MonthSummaryResponse,
)
from receipt_tracker.services.discount_service import calculate_receipt_discount
from receipt_tracker.services.monthly_total_service import (
    month_summary,
    monthly_history,
    monthly_total,
    monthly_total_for_supplier,
)

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

router = APIRouter(prefix="/monthly-totals", tags=["Monthly Totals"])


async def _monthly_total_response(db: AsyncSession, month: str, supplier_id: Optional[int]) -> dict:
    if supplier_id is None:
        total = await monthly_total(db, month)
    else:
        total = await monthly_total_for_supplier(db, supplier_id, month)
    return {
        "message": "Monthly total fetched successfully",
        "data": MonthlyTotal(month=month, supplier_id=supplier_id, total_grams_21k=total),
    }


@router.get("/current", response_model=MonthlyTotalResponse)
async def current_monthly_total(
    db: AsyncSession = Depends(get_db),
    month: str = Depends(get_current_month),
    supplier_id: Optional[int] = Query(None),
):
    return await _monthly_total_response(db, month, supplier_id)


@router.get("/history", response_model=MonthHistoryResponse)
async def monthly_totals_history(
    db: AsyncSession = Depends(get_db),
    current_month: str = Depends(get_current_month),
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="Last month of the history, defaults to the current month"),
    count: int = Query(6, ge=1, le=36),
):
    summaries = await monthly_history(db, month or current_month, count)
    return {"message": "Monthly history fetched successfully", "total": len(summaries), "data": summaries}


@router.post("/calculate-discount", response_model=DiscountResponse)
async def calculate_discount_route(
    data: DiscountRequest,
    db: AsyncSession = Depends(get_db),
    current_month: str = Depends(get_current_month),
):
    result = await calculate_receipt_discount(
        db,
        data.supplier_id,
        data.grams,
        data.karat_type,
        data.month or current_month,
        purchase_id=data.purchase_id,
        base_fee=data.base_fee,
    )
    message = "Discount calculated successfully" if not result.degraded else "Discount unavailable, no discount applied"
    return {"message": message, "data": result}


@router.get("/{month}", response_model=MonthlyTotalResponse)
async def monthly_total_route(
    month: str = Path(..., pattern=MONTH_PATTERN),
    supplier_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    return await _monthly_total_response(db, month, supplier_id)


@router.get("/{month}/summary", response_model=MonthSummaryResponse)
async def month_summary_route(
    month: str = Path(..., pattern=MONTH_PATTERN),
    db: AsyncSession = Depends(get_db),
):
    return {"message": "Month summary fetched successfully", "data": await month_summary(db, month)}
