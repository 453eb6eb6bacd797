# main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from receipt_tracker.core.db import get_session_factory, init_models
from receipt_tracker.core.logging_config import configure_logging
from receipt_tracker.middleware.request_logger import RequestLoggerMiddleware
from receipt_tracker.routers import router as api_router
from receipt_tracker.services.recalculation_queue import RecalculationQueue

app = FastAPI(
    title="Gold Receipt Tracker API",
    description="FastAPI backend for gold purchase receipts and monthly supplier discounts",
    version="0.1.0"
)
# CORS setup
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # adjust for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggerMiddleware)

# Health check endpoint
@app.get("/", tags=["Health"])
async def health_check():
    return {"status": "ok", "message": "Backend is running"}

# Register routers
app.include_router(api_router)


@app.on_event("startup")
async def on_startup():
    configure_logging()
    await init_models()
    app.state.recalculation_queue = RecalculationQueue(get_session_factory())
    app.state.recalculation_queue.start()


@app.on_event("shutdown")
async def on_shutdown():
    queue = getattr(app.state, "recalculation_queue", None)
    if queue:
        await queue.stop()
