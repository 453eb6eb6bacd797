import os
from decimal import Decimal, InvalidOperation
from dotenv import load_dotenv

load_dotenv()

# -----------------------
# Database Config
# -----------------------
DB_TYPE = os.getenv("DB_TYPE", "sqlite").lower()

if DB_TYPE == "postgres":
    DATABASE_URL = os.getenv("DATABASE_URL")
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL is required for Postgres setup")
elif DB_TYPE == "sqlite":
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./receipts.db")
else:
    raise ValueError(f"Unsupported DB_TYPE: {DB_TYPE}")

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

# -----------------------
# Logging Config
# -----------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -----------------------
# Discount Config
# -----------------------
try:
    BASE_FEE_PER_GRAM = Decimal(os.getenv("BASE_FEE_PER_GRAM", "5"))
except InvalidOperation:
    raise ValueError("BASE_FEE_PER_GRAM must be a number")
if BASE_FEE_PER_GRAM < 0:
    raise ValueError("BASE_FEE_PER_GRAM cannot be negative")

# "supplier": tiers resolve against the supplier's own monthly grams.
# "global": tiers resolve against the monthly grams of every supplier.
MONTHLY_TOTAL_SCOPE = os.getenv("MONTHLY_TOTAL_SCOPE", "global").lower()
if MONTHLY_TOTAL_SCOPE not in ("supplier", "global"):
    raise ValueError(f"Unsupported MONTHLY_TOTAL_SCOPE: {MONTHLY_TOTAL_SCOPE}")

# -----------------------
# Recalculation Worker Config
# -----------------------
# SQLite allows a single writer at a time
RECALC_CONCURRENCY = int(os.getenv("RECALC_CONCURRENCY", "1" if DB_TYPE == "sqlite" else "4"))
RECALC_SWEEP_INTERVAL_SECONDS = float(os.getenv("RECALC_SWEEP_INTERVAL_SECONDS", "60"))
RECALC_MAX_ATTEMPTS = int(os.getenv("RECALC_MAX_ATTEMPTS", "5"))

if RECALC_CONCURRENCY < 1:
    raise ValueError("RECALC_CONCURRENCY must be at least 1")
