"""Volume discount tier resolution.

Tiers are ranked by ascending threshold: the first three are named
``low``, ``medium`` and ``high``, any further ones ``tier_4``, ``tier_5``...
The highest tier whose threshold the monthly total reaches applies; when
none is reached the lowest tier is the fallback. A supplier without tiers
gets no discount.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from receipt_tracker.core.constants import RANK_NAMES, ZERO
from receipt_tracker.utils.decimal_utils import to_decimal, to_money


@dataclass(frozen=True)
class TierLevel:
    rank: str
    threshold: Decimal
    rate: Decimal


@dataclass(frozen=True)
class TierMatch:
    rank: str
    rate: Decimal
    threshold: Optional[Decimal] = None


@dataclass(frozen=True)
class TierSchedule:
    levels: Tuple[TierLevel, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.levels


NO_DISCOUNT = TierMatch(rank=RANK_NAMES[0], rate=ZERO)


def rank_name(position: int) -> str:
    """Ordinal rank of the tier at ``position`` (0-based, ascending threshold)."""
    if position < len(RANK_NAMES):
        return RANK_NAMES[position]
    return f"tier_{position + 1}"


def build_schedule(tiers: Iterable[Tuple[object, object]]) -> TierSchedule:
    """Build a schedule from ``(threshold, rate)`` pairs in any order.

    Raises ``ValueError`` for malformed data: duplicate or negative
    thresholds, or rates outside [0, 1].
    """
    pairs = sorted(((to_decimal(t), to_decimal(r)) for t, r in tiers), key=lambda pair: pair[0])
    seen = set()
    levels = []
    for position, (threshold, rate) in enumerate(pairs):
        if threshold < 0:
            raise ValueError(f"Tier threshold cannot be negative: {threshold}")
        if threshold in seen:
            raise ValueError(f"Duplicate tier threshold: {threshold}")
        if not (ZERO <= rate <= 1):
            raise ValueError(f"Tier rate must be a fraction between 0 and 1: {rate}")
        seen.add(threshold)
        levels.append(TierLevel(rank=rank_name(position), threshold=threshold, rate=rate))
    return TierSchedule(levels=tuple(levels))


def resolve_tier(schedule: TierSchedule, monthly_total) -> TierMatch:
    if schedule.is_empty:
        return NO_DISCOUNT
    total = to_decimal(monthly_total)
    match = schedule.levels[0]
    for level in schedule.levels[1:]:
        if total >= level.threshold:
            match = level
    return TierMatch(rank=match.rank, rate=match.rate, threshold=match.threshold)


def discount_for_fee(base_fee, rate) -> Tuple[Decimal, Decimal]:
    """Return ``(discount_amount, net_fee)``; the discount is a share of the fee."""
    fee = to_money(base_fee)
    amount = to_money(fee * to_decimal(rate))
    return amount, fee - amount
