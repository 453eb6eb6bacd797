"""Karat weight conversion."""
from decimal import Decimal

from receipt_tracker.core.constants import KARAT_CONVERSION_RATE, KARAT_18, KARAT_21
from receipt_tracker.utils.decimal_utils import to_decimal, to_grams


def to_21k_equivalent(grams_18k=0, grams_21k=0) -> Decimal:
    """Return ``grams_21k + grams_18k * 18/21`` rounded to the weight precision.

    Negative weights are rejected by the request schemas before they get here.
    """
    return to_grams(to_decimal(grams_21k) + to_decimal(grams_18k) * KARAT_CONVERSION_RATE)


def grams_to_21k(grams, karat_type: str) -> Decimal:
    if karat_type == KARAT_18:
        return to_21k_equivalent(grams_18k=grams)
    if karat_type == KARAT_21:
        return to_21k_equivalent(grams_21k=grams)
    raise ValueError(f"Unsupported karat type: {karat_type}")
