from __future__ import annotations

from decimal import Decimal

from .brackets import evaluate_period_tax
from .models import EmployeeProfile, FederalTaxResult, YTDAccumulators
from .money import ZERO, Number, add, divide, multiply, non_negative, subtract, to_money
from .tax_tables import FederalTable
from .wage_caps import taxable_wage_this_period, wages_over_threshold


def calculate_federal_tax(
    gross_pay: Number,
    profile: EmployeeProfile,
    ytd: YTDAccumulators,
    table: FederalTable,
    periods_per_year: int,
    pre_tax_retirement: Number = ZERO,
) -> FederalTaxResult:
    """Federal income tax withholding (2020+ W-4 percentage method) and employee FICA.

    Pre-tax retirement reduces income-tax wages only; Social Security and
    Medicare are always computed on full gross.
    """
    gross = to_money(gross_pay)
    status = profile.filing_status

    standard_deduction = divide(table.standard_deduction_for(status), periods_per_year)
    other_income = divide(profile.other_income, periods_per_year)
    extra_deductions = divide(profile.deductions, periods_per_year)
    taxable = non_negative(
        subtract(add(gross, other_income), pre_tax_retirement, standard_deduction, extra_deductions)
    )

    bracket_tax = evaluate_period_tax(taxable, table.brackets_for(status), periods_per_year)
    dependent_credit = divide(multiply(profile.allowances, table.dependent_credit), periods_per_year)
    income_tax = add(non_negative(subtract(bracket_tax.period_tax, dependent_credit)), profile.additional_withholding)

    ss = table.social_security
    ss_wages = taxable_wage_this_period(gross, ss.wage_cap, ytd.gross)
    social_security = multiply(ss_wages, ss.rate)

    medicare_cfg = table.medicare
    medicare = multiply(gross, medicare_cfg.rate)
    additional_medicare = multiply(
        wages_over_threshold(gross, medicare_cfg.additional_threshold, ytd.gross),
        medicare_cfg.additional_rate,
    )

    return FederalTaxResult(
        income_tax=income_tax,
        social_security=social_security,
        medicare=medicare,
        additional_medicare=additional_medicare,
        total=add(income_tax, social_security, medicare, additional_medicare),
        taxable_wages=taxable,
        standard_deduction=standard_deduction,
        dependent_credit=dependent_credit,
        social_security_wages=ss_wages,
        marginal_rate=bracket_tax.marginal_rate,
    )


def effective_rate(result: FederalTaxResult, gross_pay: Number) -> Decimal:
    gross = to_money(gross_pay)
    if gross == 0:
        return ZERO
    return divide(multiply(result.total, 100), gross)
