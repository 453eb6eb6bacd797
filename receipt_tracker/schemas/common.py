# receipt_tracker/schemas/common.py
from decimal import Decimal
from typing_extensions import Annotated
from pydantic import Field

Grams = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]
Money = Annotated[Decimal, Field(ge=0, max_digits=14, decimal_places=2)]
# Discount rates are fractions: 0.15 means 15%
Rate = Annotated[Decimal, Field(ge=0, le=1, max_digits=6, decimal_places=4)]
KaratType = Annotated[str, Field(pattern="^(18|21)$")]
MonthKey = Annotated[str, Field(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")]
