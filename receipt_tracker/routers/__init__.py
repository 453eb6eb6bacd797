# receipt_tracker/routers/__init__.py
from fastapi import APIRouter

from .stores_router import router as stores_router
from .suppliers_router import router as suppliers_router
from .discount_tiers_router import router as discount_tiers_router
from .purchases_router import router as purchases_router
from .purchase_suppliers_router import router as purchase_suppliers_router
from .purchase_receipts_router import router as purchase_receipts_router
from .payments_router import router as payments_router
from .monthly_totals_router import router as monthly_totals_router
from .recalculations_router import router as recalculations_router

router = APIRouter(prefix="/api")

router.include_router(stores_router)
router.include_router(suppliers_router)
router.include_router(discount_tiers_router)
router.include_router(purchases_router)
router.include_router(purchase_suppliers_router)
router.include_router(purchase_receipts_router)
router.include_router(payments_router)
router.include_router(monthly_totals_router)
router.include_router(recalculations_router)
