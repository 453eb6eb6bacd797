# receipt_tracker/utils/decimal_utils.py
from decimal import Decimal, ROUND_HALF_UP
from receipt_tracker.core.constants import MONEY_PRECISION, GRAMS_PRECISION, RATE_PRECISION, STORED_GRAMS_PRECISION, ZERO


def to_decimal(value) -> Decimal:
    """Coerce ints, floats, strings and Decimals; None becomes zero."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_money(value) -> Decimal:
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def to_grams(value) -> Decimal:
    return to_decimal(value).quantize(GRAMS_PRECISION, rounding=ROUND_HALF_UP)


def to_rate(value) -> Decimal:
    return to_decimal(value).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)


def compute_balance(total_net_fees, total_paid) -> Decimal:
    balance = to_money(total_net_fees) - to_money(total_paid)
    return balance if balance > ZERO else to_money(ZERO)


def to_stored_grams(value) -> Decimal:
    return to_decimal(value).quantize(STORED_GRAMS_PRECISION, rounding=ROUND_HALF_UP)
