from decimal import Decimal

# 18k gold expressed as 21k-equivalent weight
KARAT_CONVERSION_RATE = Decimal(18) / Decimal(21)

GRAMS_PRECISION = Decimal("0.1")
# Column scale of stored weights; database sums are normalised to it
STORED_GRAMS_PRECISION = Decimal("0.01")
MONEY_PRECISION = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")

ZERO = Decimal("0")

DEFAULT_DISCOUNT_RATE = Decimal("0")

KARAT_18 = "18"
KARAT_21 = "21"
KARAT_TYPES = (KARAT_18, KARAT_21)

# Ordinal names of the first three tiers in ascending threshold order
RANK_NAMES = ("low", "medium", "high")
