import os
from datetime import date

# Configure before the application modules read the environment
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BASE_FEE_PER_GRAM", "5")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from main import app
from receipt_tracker.core.db import Base, enable_sqlite_foreign_keys, get_db, get_session_factory
from receipt_tracker.models import DiscountTier, Store, Supplier
from receipt_tracker.routers.deps import get_today
from receipt_tracker.schemas.purchase_schemas import PurchaseCreate
from receipt_tracker.services.purchase_service import create_purchase
from receipt_tracker.services.recalculation_queue import RecalculationQueue

TODAY = date(2025, 3, 20)
MONTH = "2025-03"


@pytest.fixture
async def engine(tmp_path):
    """A fresh SQLite database file per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'receipts.db'}")
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def queue(session_factory):
    """A queue that is never started: tests drain it explicitly."""
    return RecalculationQueue(session_factory, sweep_interval=0.05, max_attempts=3, concurrency=1, clock=lambda: TODAY)


@pytest.fixture
async def client(session_factory, queue):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_today] = lambda: TODAY
    app.state.recalculation_queue = queue

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.recalculation_queue = None


# -----------------------------
# Data helpers
# -----------------------------
@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def month():
    return MONTH


@pytest.fixture
async def store(db):
    store = Store(name="Main Store", code="ST-001")
    db.add(store)
    await db.commit()
    return store


@pytest.fixture
def make_supplier(db):
    async def _make(name, code, tiers=()):
        """Creates a supplier with 21k tiers given as ``(threshold, rate)`` pairs."""
        supplier = Supplier(name=name, code=code)
        db.add(supplier)
        await db.flush()
        for position, (threshold, rate) in enumerate(tiers):
            db.add(DiscountTier(
                supplier_id=supplier.id,
                karat_type="21",
                name=f"Tier {position + 1}",
                threshold=threshold,
                discount_percentage=rate,
            ))
        await db.commit()
        return supplier

    return _make


@pytest.fixture
async def tiered_supplier(make_supplier):
    return await make_supplier(
        "Golden Supplies", "GS",
        tiers=[("0", "0"), ("200", "0.08"), ("500", "0.15")],
    )


@pytest.fixture
def make_purchase(db):
    async def _make(store_id, purchase_date, receipts_by_supplier, due_date=None):
        """``receipts_by_supplier`` maps supplier ids to lists of receipt dicts."""
        data = PurchaseCreate(
            store_id=store_id,
            date=purchase_date,
            due_date=due_date,
            suppliers=[
                {"supplier_id": supplier_id, "receipts": receipts}
                for supplier_id, receipts in receipts_by_supplier.items()
            ],
        )
        response = await create_purchase(db, data, today=TODAY)
        return response["data"]

    return _make
