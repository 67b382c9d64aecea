from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Tuple

from .brackets import evaluate_period_tax
from .models import EmployeeProfile, LocalTaxResult
from .money import ZERO, Number, add, divide, multiply, to_money
from .tax_tables import LocalityTable, TaxTable


def _head_tax(locality: LocalityTable, gross: Decimal, periods_per_year: int) -> Decimal:
    head_tax = locality.head_tax
    if head_tax is None:
        return ZERO
    if multiply(gross, periods_per_year) <= head_tax.annual_wage_threshold:
        return ZERO
    return divide(head_tax.annual_amount, periods_per_year)


def _resident_tax(locality: LocalityTable, gross: Decimal, profile: EmployeeProfile, periods_per_year: int):
    if locality.resident_rate is not None:
        return multiply(gross, locality.resident_rate), locality.resident_rate, "flat"
    bracket_tax = evaluate_period_tax(gross, locality.resident_brackets_for(profile.filing_status), periods_per_year)
    return bracket_tax.period_tax, bracket_tax.marginal_rate, "progressive"


def _locality_tax(
    code: str,
    locality: LocalityTable,
    gross: Decimal,
    profile: EmployeeProfile,
    periods_per_year: int,
    resident: bool,
) -> Optional[LocalTaxResult]:
    if resident:
        wage_tax, rate, tax_type = _resident_tax(locality, gross, profile, periods_per_year)
    elif locality.nonresident_rate is None:
        return None
    else:
        wage_tax, rate, tax_type = multiply(gross, locality.nonresident_rate), locality.nonresident_rate, "flat"

    head_tax = _head_tax(locality, gross, periods_per_year)
    return LocalTaxResult(
        locality=code,
        resident=resident,
        wage_tax=wage_tax,
        head_tax=head_tax,
        total=add(wage_tax, head_tax),
        rate=rate,
        tax_type=tax_type,
    )


def calculate_local_taxes(
    gross_pay: Number,
    profile: EmployeeProfile,
    table: TaxTable,
    periods_per_year: int,
) -> Tuple[LocalTaxResult, ...]:
    """Local wage taxes for the residence locality and, if different, the work locality.

    Localities that exempt non-residents produce no line for the work locality.
    """
    gross = to_money(gross_pay)
    results: List[LocalTaxResult] = []

    residence = profile.residence_locality.upper() if profile.residence_locality else None
    work = profile.work_locality.upper() if profile.work_locality else None

    if residence:
        line = _locality_tax(residence, table.locality(residence), gross, profile, periods_per_year, resident=True)
        if line is not None:
            results.append(line)
    if work and work != residence:
        line = _locality_tax(work, table.locality(work), gross, profile, periods_per_year, resident=False)
        if line is not None:
            results.append(line)
    return tuple(results)
