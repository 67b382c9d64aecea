from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from .errors import InvalidInputError
from .money import ONE, Number, multiply, ratio, to_decimal

FULL_PERIOD = Decimal(1)
NO_WORK = Decimal(0)


def business_days_inclusive(start: date, end: date) -> int:
    """Count Monday-Friday days in [start, end]. Zero when end precedes start."""
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    cursor = start + timedelta(days=full_weeks * 7)
    for offset in range(remainder):
        if (cursor + timedelta(days=offset)).weekday() < 5:
            count += 1
    return count


def proration_factor(
    period_start: date,
    period_end: date,
    hire_date: date,
    termination_date: Optional[date] = None,
) -> Decimal:
    """Fraction of the period's business days the employee was on payroll.

    Hire counts from the start of its day and termination through the end of
    its day, so both dates are worked days.
    """
    if period_end < period_start:
        raise InvalidInputError(f"Pay period end {period_end} precedes start {period_start}")

    if hire_date <= period_start and (termination_date is None or termination_date >= period_end):
        return FULL_PERIOD

    work_start = max(period_start, hire_date)
    work_end = min(period_end, termination_date if termination_date is not None else period_end)
    if work_start > work_end:
        return NO_WORK

    worked = business_days_inclusive(work_start, work_end)
    # raises CalculationError for a period with no business days
    factor = ratio(worked, business_days_inclusive(period_start, period_end))
    return max(NO_WORK, min(ONE, factor))


def prorate_amount(amount: Number, factor: Number) -> Decimal:
    return multiply(to_decimal(amount), to_decimal(factor))
