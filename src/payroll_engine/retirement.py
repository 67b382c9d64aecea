from __future__ import annotations

from decimal import Decimal

from .errors import ConfigurationError
from .models import CompanySettings, EmployeeProfile, RetirementResult, RetirementType
from .money import ZERO, Number, minimum, percent_of, to_money


def employee_contribution(gross_pay: Number, profile: EmployeeProfile) -> Decimal:
    gross = to_money(gross_pay)
    if profile.retirement_type is None:
        if profile.retirement_rate > 0 or profile.retirement_amount > 0:
            raise ConfigurationError(
                f"Employee {profile.employee_id} has a retirement rate or amount but no retirement type"
            )
        return ZERO
    if profile.retirement_type == RetirementType.PERCENT:
        contribution = percent_of(gross, profile.retirement_rate)
    else:
        contribution = to_money(profile.retirement_amount)
    return minimum(contribution, gross)


def employer_match(gross_pay: Number, contribution: Number, company: CompanySettings) -> Decimal:
    gross = to_money(gross_pay)
    contribution = to_money(contribution)
    if contribution == 0 or company.match_rate == 0:
        return ZERO
    eligible_cap = gross if company.match_limit_percent is None else percent_of(gross, company.match_limit_percent)
    match = percent_of(minimum(contribution, eligible_cap), company.match_rate)
    return minimum(match, gross)


def calculate_retirement(gross_pay: Number, profile: EmployeeProfile, company: CompanySettings) -> RetirementResult:
    contribution = employee_contribution(gross_pay, profile)
    return RetirementResult(
        employee_contribution=contribution,
        employer_match=employer_match(gross_pay, contribution, company),
    )
