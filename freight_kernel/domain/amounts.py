"""
Amounts -- Decimal coercion, rounding and date helpers.

Responsibility:
    The leaf utilities every other module leans on: turning caller-supplied
    amounts into Decimal, rounding to currency precision, flooring at zero,
    tolerant comparison, date parsing and stable date ordering.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No outward dependencies except freight_kernel.exceptions.

Invariants enforced:
    - Decimal-only arithmetic: floats are converted through ``str()`` at the
      boundary and never participate in arithmetic.
    - Rounding is ROUND_HALF_UP to AMOUNT_DECIMAL_PLACES unless a caller
      asks for a different precision.
    - ``sort_by_date`` is stable: ties keep their original relative order.

Failure modes:
    - MalformedAmountError for None, booleans, NaN/Infinity and
      non-numeric strings.
    - MalformedDateError for anything that is not a date, datetime or
      ISO-8601 string.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, TypeVar

from freight_kernel.exceptions import MalformedAmountError, MalformedDateError

T = TypeVar("T")

AMOUNT_DECIMAL_PLACES = 2
ZERO = Decimal("0")
DEFAULT_TOLERANCE = Decimal("0.01")


def to_amount(value: Any, field: str = "amount") -> Decimal:
    """
    Coerce a caller-supplied value to Decimal.

    Preconditions:
        value is a Decimal, int, float or numeric string.

    Postconditions:
        Returns a finite Decimal. Floats go through ``str()`` so that
        ``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.

    Raises:
        MalformedAmountError: for None, booleans, non-finite values and
            strings that do not parse.
    """
    if value is None or isinstance(value, bool):
        raise MalformedAmountError(field, value)
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise MalformedAmountError(field, value) from exc
    else:
        raise MalformedAmountError(field, value)
    if not result.is_finite():
        raise MalformedAmountError(field, value)
    return result


def round_amount(value: Decimal, places: int = AMOUNT_DECIMAL_PLACES) -> Decimal:
    """Round half-up to ``places`` decimal places."""
    quantum = Decimal(1).scaleb(-places)
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def floor_at_zero(value: Decimal) -> Decimal:
    """Clamp negative values to zero."""
    return value if value > ZERO else ZERO


def sum_amounts(values: Iterable[Decimal]) -> Decimal:
    """Sum Decimals, starting from Decimal zero (never int 0)."""
    return sum(values, ZERO)


def amounts_match(
    a: Decimal,
    b: Decimal,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> bool:
    """True when ``a`` and ``b`` differ by strictly less than ``tolerance``."""
    return abs(a - b) < tolerance


def parse_date(value: Any, field: str = "date") -> date:
    """
    Parse a calendar date.

    Accepts ``date``, ``datetime`` (its date part) and ISO-8601 strings,
    with or without a time component.

    Raises:
        MalformedDateError: if ``value`` is anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError as exc:
            raise MalformedDateError(field, value) from exc
    raise MalformedDateError(field, value)


def same_day(a: date, b: date) -> bool:
    """True when both values fall on the same calendar day."""
    return parse_date(a) == parse_date(b)


def sort_by_date(items: Iterable[T], key: Callable[[T], date]) -> list[T]:
    """Stable ascending sort by date; ties keep their input order."""
    return sorted(items, key=key)


def format_currency(amount: Decimal) -> str:
    """
    Format an amount as whole rupees with Indian digit grouping.

    ``Decimal("1234567")`` -> ``"Rs. 12,34,567"``.
    """
    whole = round_amount(amount, 0)
    sign = "-" if whole < ZERO else ""
    digits = str(abs(int(whole)))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups) + "," + tail
    return f"Rs. {sign}{digits}"
