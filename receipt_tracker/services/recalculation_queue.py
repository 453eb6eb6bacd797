# receipt_tracker/services/recalculation_queue.py
"""Background worker that runs pending discount recalculations.

Mutations write ``PendingRecalculation`` markers in their own transaction
and call ``notify()`` after committing. The worker drains the markers on
every notification and on a periodic sweep, so a marker whose notification
was lost (restart, crash) still runs. Delivery is at-least-once; the
recalculations are idempotent.
"""
import asyncio
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional
from sqlalchemy import delete, func, select, update

from receipt_tracker.core.config import RECALC_CONCURRENCY, RECALC_MAX_ATTEMPTS, RECALC_SWEEP_INTERVAL_SECONDS
from receipt_tracker.models.recalculation_models import PendingRecalculation
from receipt_tracker.schemas.discount_schemas import DrainResult
from receipt_tracker.services.recalculation_service import (
    recalculate_month_discounts,
    recalculate_supplier_discounts,
)

logger = logging.getLogger(__name__)


class MonthWork:
    """Markers of one month: a whole-month marker subsumes the supplier ones."""

    def __init__(self, month: str):
        self.month = month
        self.whole_month_ids: List[int] = []
        self.supplier_ids: Dict[int, List[int]] = defaultdict(list)

    def add(self, marker: PendingRecalculation) -> None:
        if marker.supplier_id is None:
            self.whole_month_ids.append(marker.id)
        else:
            self.supplier_ids[marker.supplier_id].append(marker.id)

    @property
    def all_ids(self) -> List[int]:
        ids = list(self.whole_month_ids)
        for marker_ids in self.supplier_ids.values():
            ids.extend(marker_ids)
        return ids


def group_markers(markers) -> Dict[str, MonthWork]:
    work: Dict[str, MonthWork] = {}
    for marker in markers:
        work.setdefault(marker.month, MonthWork(marker.month)).add(marker)
    return work


class RecalculationQueue:
    def __init__(
        self,
        session_factory,
        sweep_interval: float = RECALC_SWEEP_INTERVAL_SECONDS,
        max_attempts: int = RECALC_MAX_ATTEMPTS,
        concurrency: int = RECALC_CONCURRENCY,
        clock=date.today,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.sweep_interval = sweep_interval
        self.max_attempts = max_attempts
        self.concurrency = concurrency
        self._wakeup = asyncio.Event()
        self._drain_lock = asyncio.Lock()
        self._stopping = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stopping = False
        self._task = asyncio.create_task(self._run(), name="recalculation-queue")
        logger.info("Recalculation worker started (sweep every %ss)", self.sweep_interval)

    async def stop(self) -> None:
        if not self._task:
            return
        self._stopping = True
        self._wakeup.set()
        try:
            await asyncio.wait_for(self._task, timeout=max(self.sweep_interval, 5))
        except asyncio.TimeoutError:
            self._task.cancel()
            logger.warning("Recalculation worker did not stop in time, cancelled")
        self._task = None
        logger.info("Recalculation worker stopped")

    def notify(self) -> None:
        """Wake the worker after a commit that wrote markers. Never blocks."""
        self._wakeup.set()

    async def _run(self) -> None:
        while not self._stopping:
            try:
                await self.drain()
            except Exception:
                logger.exception("Recalculation sweep failed")
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=self.sweep_interval)
            except asyncio.TimeoutError:
                pass
            self._wakeup.clear()

    async def pending(self) -> List[PendingRecalculation]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(PendingRecalculation)
                .where(PendingRecalculation.attempts < self.max_attempts)
                .order_by(PendingRecalculation.id)
            )
            return list(result.scalars().all())

    async def drain(self) -> DrainResult:
        """Run every runnable marker once. Returns how many markers succeeded and failed."""
        async with self._drain_lock:
            markers = await self.pending()
            today = self.clock()
            processed = failed = 0

            for month, work in group_markers(markers).items():
                if work.whole_month_ids:
                    result = await recalculate_month_discounts(self.session_factory, month, today, self.concurrency)
                    if result.success:
                        processed += await self._complete(work.all_ids)
                    else:
                        errors = "; ".join(r.error or r.message for r in result.suppliers if not r.success)
                        failed += await self._fail(work.all_ids, errors or result.message)
                    continue

                for supplier_id, marker_ids in work.supplier_ids.items():
                    result = await recalculate_supplier_discounts(self.session_factory, supplier_id, month, today)
                    if result.success:
                        processed += await self._complete(marker_ids)
                    else:
                        failed += await self._fail(marker_ids, result.error or result.message)

            remaining = await self._count_runnable()
            if markers:
                logger.info(
                    "Recalculation drain: %s done, %s failed, %s remaining", processed, failed, remaining
                )
            return DrainResult(processed=processed, failed=failed, remaining=remaining)

    async def _complete(self, marker_ids: List[int]) -> int:
        async with self.session_factory() as db:
            await db.execute(delete(PendingRecalculation).where(PendingRecalculation.id.in_(marker_ids)))
            await db.commit()
        return len(marker_ids)

    async def _fail(self, marker_ids: List[int], error: str) -> int:
        async with self.session_factory() as db:
            await db.execute(
                update(PendingRecalculation)
                .where(PendingRecalculation.id.in_(marker_ids))
                .values(attempts=PendingRecalculation.attempts + 1, last_error=error)
            )
            await db.commit()
            exhausted = (
                await db.execute(
                    select(PendingRecalculation.id).where(
                        PendingRecalculation.id.in_(marker_ids),
                        PendingRecalculation.attempts >= self.max_attempts,
                    )
                )
            ).scalars().all()
        if exhausted:
            logger.error("Recalculation markers %s gave up after %s attempts: %s", exhausted, self.max_attempts, error)
        return len(marker_ids)

    async def _count_runnable(self) -> int:
        async with self.session_factory() as db:
            return (
                await db.execute(
                    select(func.count(PendingRecalculation.id)).where(
                        PendingRecalculation.attempts < self.max_attempts
                    )
                )
            ).scalar() or 0
