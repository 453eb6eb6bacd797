# receipt_tracker/routers/deps.py
from datetime import date
from fastapi import Depends, Request

from receipt_tracker.utils.months import current_month_key


def get_recalculation_queue(request: Request):
    """The app's background recalculation queue, or None when it is not running."""
    return getattr(request.app.state, "recalculation_queue", None)


def get_today() -> date:
    return date.today()


def get_current_month(today: date = Depends(get_today)) -> str:
    return current_month_key(today)
