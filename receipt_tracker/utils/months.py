# receipt_tracker/utils/months.py
import re
from datetime import date
from typing import List, Optional, Tuple

MONTH_KEY_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def current_month_key(today: Optional[date] = None) -> str:
    """``YYYY-MM`` of ``today``. Only entry points (routers, the worker) call this."""
    return month_key(today or date.today())


def parse_month_key(month: str) -> Tuple[int, int]:
    match = MONTH_KEY_PATTERN.match(month or "")
    if not match:
        raise ValueError(f"Invalid month '{month}', expected YYYY-MM")
    return int(match.group(1)), int(match.group(2))


def month_bounds(month: str) -> Tuple[date, date]:
    """First day of ``month`` and first day of the following month."""
    year, mon = parse_month_key(month)
    start = date(year, mon, 1)
    end = date(year + 1, 1, 1) if mon == 12 else date(year, mon + 1, 1)
    return start, end


def previous_month_keys(month: str, count: int) -> List[str]:
    """``count`` month keys ending at ``month``, newest first."""
    year, mon = parse_month_key(month)
    keys = []
    for _ in range(count):
        keys.append(f"{year:04d}-{mon:02d}")
        mon -= 1
        if mon == 0:
            year, mon = year - 1, 12
    return keys
