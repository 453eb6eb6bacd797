# receipt_tracker/routers/recalculations_router.py
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_tracker.core.db import get_db, get_session_factory
from receipt_tracker.models.recalculation_models import PendingRecalculation
from receipt_tracker.routers.deps import get_current_month, get_recalculation_queue, get_today
from receipt_tracker.schemas.discount_schemas import (
    DrainResponse,
    MonthRecalculationResponse,
    PendingRecalculationListResponse,
    PendingRecalculationOut,
    RecalculationResponse,
)
from receipt_tracker.services.recalculation_queue import RecalculationQueue
from receipt_tracker.services.recalculation_service import (
    recalculate_month_discounts,
    recalculate_purchase_discounts,
    recalculate_supplier_discounts,
)

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

router = APIRouter(prefix="/recalculations", tags=["Recalculations"])


# -----------------------------------------------------------
# MANUAL TRIGGERS (run synchronously, report the outcome)
# -----------------------------------------------------------
@router.post("/suppliers/{supplier_id}", response_model=RecalculationResponse)
async def recalculate_supplier_route(
    supplier_id: int,
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="Defaults to the current month"),
    today: date = Depends(get_today),
    current_month: str = Depends(get_current_month),
    session_factory=Depends(get_session_factory),
):
    result = await recalculate_supplier_discounts(session_factory, supplier_id, month or current_month, today)
    return {"message": result.message, "data": result}


@router.post("/months/{month}", response_model=MonthRecalculationResponse)
async def recalculate_month_route(
    month: str = Path(..., pattern=MONTH_PATTERN),
    today: date = Depends(get_today),
    session_factory=Depends(get_session_factory),
):
    result = await recalculate_month_discounts(session_factory, month, today)
    return {"message": result.message, "data": result}


@router.post("/purchases/{purchase_id}", response_model=RecalculationResponse)
async def recalculate_purchase_route(
    purchase_id: int,
    today: date = Depends(get_today),
    session_factory=Depends(get_session_factory),
):
    result = await recalculate_purchase_discounts(session_factory, purchase_id, today)
    return {"message": result.message, "data": result}


# -----------------------------------------------------------
# BACKGROUND QUEUE
# -----------------------------------------------------------
@router.get("/pending", response_model=PendingRecalculationListResponse)
async def list_pending(db: AsyncSession = Depends(get_db)):
    markers = (
        await db.execute(select(PendingRecalculation).order_by(PendingRecalculation.id))
    ).scalars().all()
    return {
        "message": "Pending recalculations fetched successfully",
        "total": len(markers),
        "data": [PendingRecalculationOut.model_validate(m) for m in markers],
    }


@router.post("/drain", response_model=DrainResponse)
async def drain_pending(
    queue=Depends(get_recalculation_queue),
    today: date = Depends(get_today),
    session_factory=Depends(get_session_factory),
):
    """Runs every pending recalculation now instead of waiting for the worker."""
    queue = queue or RecalculationQueue(session_factory, clock=lambda: today)
    result = await queue.drain()
    return {"message": "Pending recalculations processed", "data": result}
