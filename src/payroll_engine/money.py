from __future__ import annotations

from decimal import (
    ROUND_DOWN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Union

from .errors import CalculationError, InvalidInputError

Number = Union[Decimal, int, float, str]

MONEY_CONTEXT = Context(
    prec=28,
    rounding=ROUND_HALF_UP,
    traps=[InvalidOperation, DivisionByZero, Overflow],
)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Number) -> Decimal:
    """Convert without rounding. Floats go through ``str`` so binary noise never enters.

    NaN and infinities are rejected as input errors.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(value)
        except InvalidOperation as exc:
            raise CalculationError(f"Not a decimal amount: {value!r}") from exc
    if not result.is_finite():
        raise InvalidInputError(f"Amount must be finite, got {value!r}")
    return result


def to_money(value: Number) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        return to_decimal(value).quantize(CENT)


def add(*values: Number) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        total = Decimal(0)
        for value in values:
            total += to_decimal(value)
        return total.quantize(CENT)


def subtract(first: Number, *values: Number) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        result = to_decimal(first)
        for value in values:
            result -= to_decimal(value)
        return result.quantize(CENT)


def multiply(*values: Number) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        product = Decimal(1)
        for value in values:
            product *= to_decimal(value)
        return product.quantize(CENT)


def multiply_truncated(*values: Number) -> Decimal:
    """Product cut to whole cents toward zero, for limits that must never be exceeded."""
    with localcontext(MONEY_CONTEXT):
        product = Decimal(1)
        for value in values:
            product *= to_decimal(value)
        return product.quantize(CENT, rounding=ROUND_DOWN)


def ratio(numerator: Number, denominator: Number) -> Decimal:
    """Exact quotient at full context precision. Used where the result is a factor, not money."""
    denominator = to_decimal(denominator)
    if denominator == 0:
        raise CalculationError(f"Division by zero: {numerator} / {denominator}")
    with localcontext(MONEY_CONTEXT):
        return to_decimal(numerator) / denominator


def divide(numerator: Number, denominator: Number) -> Decimal:
    return to_money(ratio(numerator, denominator))


def percent_of(value: Number, percent: Number) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        return (to_decimal(value) * to_decimal(percent) / HUNDRED).quantize(CENT)


def minimum(*values: Number) -> Decimal:
    return to_money(min(to_decimal(v) for v in values))


def maximum(*values: Number) -> Decimal:
    return to_money(max(to_decimal(v) for v in values))


def non_negative(value: Number) -> Decimal:
    return maximum(0, value)
