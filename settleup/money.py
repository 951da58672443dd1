from decimal import Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Tolerance for every monetary comparison in the ledger.
EPSILON = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("Cannot convert value to Decimal")
    if isinstance(value, Decimal):
        return value.quantize(CENT)
    if isinstance(value, (int, float)):
        return Decimal(str(value)).quantize(CENT)
    if isinstance(value, str):
        try:
            return Decimal(value.strip()).quantize(CENT)
        except InvalidOperation:
            raise ValueError("Cannot convert value to Decimal") from None
    raise ValueError("Cannot convert value to Decimal")


def amounts_close(a: Decimal, b: Decimal, tolerance: Decimal = EPSILON) -> bool:
    return abs(a - b) <= tolerance


def is_zero(amount: Decimal) -> bool:
    return amounts_close(amount, ZERO)


def as_float(amount: Decimal) -> float:
    return float(amount.quantize(CENT))


def format_money(amount: Decimal) -> str:
    return f"${amount.quantize(CENT):.2f}".replace("$-", "-$")
