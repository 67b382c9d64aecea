from __future__ import annotations

from decimal import Decimal
from typing import Dict, Tuple

from .brackets import evaluate_period_tax, period_taxable_income
from .models import EmployeeProfile, StateTaxResult, YTDAccumulators
from .money import ZERO, Number, add, divide, multiply, non_negative, subtract, to_money
from .tax_tables import StateTable, TaxTable
from .wage_caps import taxable_wage_this_period


def _contributions(gross: Decimal, state: StateTable, ytd: YTDAccumulators) -> Tuple[Dict[str, Decimal], Dict[str, Decimal]]:
    """Per-contribution amounts and their totals by kind (sdi, sui)."""
    amounts: Dict[str, Decimal] = {}
    by_kind: Dict[str, Decimal] = {"sdi": ZERO, "sui": ZERO}
    for contribution in state.contributions:
        wages = taxable_wage_this_period(gross, contribution.wage_cap, ytd.gross)
        amount = multiply(wages, contribution.rate)
        amounts[contribution.name] = amount
        by_kind[contribution.kind] = add(by_kind[contribution.kind], amount)
    return amounts, by_kind


def calculate_state_tax(
    gross_pay: Number,
    profile: EmployeeProfile,
    ytd: YTDAccumulators,
    table: TaxTable,
    periods_per_year: int,
) -> StateTaxResult:
    """Residence-state income tax plus employee-paid state contributions.

    Raises UnsupportedJurisdictionError when the state has no table entry.
    """
    gross = to_money(gross_pay)
    code = profile.state.upper()
    state = table.state(code)
    status = profile.filing_status

    contributions, by_kind = _contributions(gross, state, ytd)

    income_tax = ZERO
    taxable = ZERO
    marginal_rate = ZERO
    if state.income_tax != "none":
        taxable = period_taxable_income(gross, state.annual_deductions_for(status), periods_per_year)
        if state.income_tax == "flat":
            tax = multiply(taxable, state.flat_rate)
            marginal_rate = state.flat_rate
        else:
            bracket_tax = evaluate_period_tax(taxable, state.brackets_for(status), periods_per_year)
            tax = bracket_tax.period_tax
            marginal_rate = bracket_tax.marginal_rate
        credit = divide(state.exemption_credit_for(status), periods_per_year)
        income_tax = non_negative(subtract(tax, credit))

    return StateTaxResult(
        state=code,
        income_tax=income_tax,
        sdi=by_kind["sdi"],
        sui=by_kind["sui"],
        total=add(income_tax, by_kind["sdi"], by_kind["sui"]),
        taxable_wages=taxable,
        marginal_rate=marginal_rate,
        contributions=contributions,
    )
