"""Wage garnishment under the CCPA Title III ceilings.

Garnishments are withheld in priority order (1 first) out of a single
ceiling computed from disposable earnings. Once the ceiling is used up the
remaining orders take nothing this period; the employer never pays more than
the ceiling even when orders are unmet.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Sequence

from .models import Garnishment, GarnishmentDetail, GarnishmentResult, GarnishmentType
from .money import ZERO, Number, add, minimum, multiply_truncated, percent_of, subtract, to_money

CHILD_SUPPORT_LIMIT = Decimal("0.60")
CHILD_SUPPORT_LIMIT_WITH_DEPENDENTS = Decimal("0.50")
STANDARD_LIMIT = Decimal("0.25")


def active_garnishments(garnishments: Sequence[Garnishment], pay_date: date) -> List[Garnishment]:
    return sorted((g for g in garnishments if g.applies_on(pay_date)), key=lambda g: g.priority)


def garnishment_ceiling(disposable: Number, garnishments: Sequence[Garnishment], supports_other_dependents: bool) -> Decimal:
    if any(g.type == GarnishmentType.CHILD_SUPPORT for g in garnishments):
        limit = CHILD_SUPPORT_LIMIT_WITH_DEPENDENTS if supports_other_dependents else CHILD_SUPPORT_LIMIT
    else:
        limit = STANDARD_LIMIT
    return multiply_truncated(disposable, limit)


def _target_amount(garnishment: Garnishment, disposable: Decimal) -> Decimal:
    if garnishment.amount > 0:
        target = to_money(garnishment.amount)
    elif garnishment.percent is not None and garnishment.percent > 0:
        target = percent_of(disposable, garnishment.percent)
    else:
        return ZERO
    balance = garnishment.remaining_balance
    if balance is not None:
        target = minimum(target, balance)
    return target


def calculate_garnishments(
    disposable_earnings: Number,
    garnishments: Sequence[Garnishment],
    pay_date: date,
    supports_other_dependents: bool = False,
) -> GarnishmentResult:
    disposable = to_money(disposable_earnings)
    # orders that would withhold nothing do not raise the ceiling
    active = [g for g in active_garnishments(garnishments, pay_date) if _target_amount(g, disposable) > 0]
    if disposable <= 0 or not active:
        return GarnishmentResult(disposable_earnings=disposable, ceiling=ZERO, total_deduction=ZERO)

    ceiling = garnishment_ceiling(disposable, active, supports_other_dependents)
    remaining = ceiling
    details: List[GarnishmentDetail] = []
    for garnishment in active:
        if remaining <= 0:
            break
        target = _target_amount(garnishment, disposable)
        actual = minimum(target, remaining)
        details.append(
            GarnishmentDetail(
                garnishment_id=garnishment.id,
                type=garnishment.type,
                target_amount=target,
                actual_amount=actual,
                limit_reached=actual < target,
            )
        )
        remaining = subtract(remaining, actual)

    return GarnishmentResult(
        disposable_earnings=disposable,
        ceiling=ceiling,
        total_deduction=add(*(d.actual_amount for d in details)),
        details=tuple(details),
    )
