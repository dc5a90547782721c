"""Ray (1e27) fixed-point integer arithmetic.

Index growth is always evaluated on Python ints so that token amounts above
2**53 and ray-scale products above 2**90 stay exact.  Nothing in this module
may touch a float.
"""

from src.data.constants import RAY


def ray_mul(value: int, ray: int) -> int:
    """Multiply *value* by a ray-scaled factor, truncating toward zero."""
    return (value * ray) // RAY


def scaled_to_underlying(scaled: int, index: int) -> int:
    """Convert a scaled balance into underlying units at *index*."""
    return ray_mul(scaled, index)


def accrued_interest(scaled: int, index_before: int, index_after: int) -> int:
    """Interest earned (or owed) by *scaled* while the index moved.

    ``scaled * (index_after - index_before) / RAY`` with truncating division.
    A negative result is returned as-is; callers decide how to treat an index
    regression.
    """
    return (scaled * (index_after - index_before)) // RAY


def parse_amount(value: object, field: str = "amount") -> int:
    """Parse a decimal-string (or int) amount into a non-negative int.

    Raises:
        ValueError: If *value* is missing, a float, a bool, negative, or not
            a plain base-10 digit string.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field} is missing or not an integer: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"{field} must be non-negative: {value}")
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            return int(text)
    raise ValueError(f"{field} is not a decimal integer string: {value!r}")


def to_units(amount: int, decimals: int) -> float:
    """Convert a raw token amount to whole-token units for display only."""
    return amount / float(10**decimals)
