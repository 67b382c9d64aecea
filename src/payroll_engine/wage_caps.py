from __future__ import annotations

from decimal import Decimal
from typing import Optional

from .money import Number, add, maximum, minimum, non_negative, subtract, to_money


def taxable_wage_this_period(current_gross: Number, annual_cap: Optional[Number], ytd_wages: Number) -> Decimal:
    """Wages still under an annual cap (SS, SDI, FUTA, SUTA) for this period."""
    if annual_cap is None:
        return non_negative(current_gross)
    headroom = subtract(annual_cap, ytd_wages)
    return maximum(0, minimum(current_gross, headroom))


def wages_over_threshold(current_gross: Number, threshold: Number, ytd_wages: Number) -> Decimal:
    """Portion of this period's wages that lands above a year-to-date threshold."""
    ytd_after = add(ytd_wages, current_gross)
    excess = subtract(ytd_after, threshold)
    if excess <= 0:
        return to_money(0)
    return non_negative(minimum(current_gross, excess))
