"""
Checked unsigned 128-bit arithmetic.

Share and balance arithmetic must fail rather than wrap; every helper raises
ArithmeticOverflow when its result leaves [0, U128_MAX].
"""

from ..constants import U128_MAX
from ..exceptions import ArithmeticOverflow


def require_u128(value: int, what: str = "value") -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ArithmeticOverflow(f"{what} must be an integer, got {value!r}")
    if value < 0 or value > U128_MAX:
        raise ArithmeticOverflow(f"{what} {value} outside the u128 range")
    return value


def checked_add(a: int, b: int) -> int:
    return require_u128(a + b, f"{a} + {b}")


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise ArithmeticOverflow(f"{a} - {b} underflows")
    return a - b


def checked_mul(a: int, b: int) -> int:
    return require_u128(a * b, f"{a} * {b}")


def checked_div(a: int, b: int) -> int:
    if b == 0:
        raise ArithmeticOverflow(f"{a} / 0")
    return a // b


def pro_rata(amount: int, numerator: int, denominator: int) -> int:
    """floor(amount * numerator / denominator) with a checked product."""
    return checked_div(checked_mul(amount, numerator), denominator)
