from __future__ import annotations

from .models import CompanySettings, EmployeeProfile, EmployerTaxResult, YTDAccumulators
from .money import Number, add, multiply, to_money
from .tax_tables import TaxTable
from .wage_caps import taxable_wage_this_period


def calculate_employer_taxes(
    gross_pay: Number,
    profile: EmployeeProfile,
    ytd: YTDAccumulators,
    company: CompanySettings,
    table: TaxTable,
) -> EmployerTaxResult:
    """Employer-paid FUTA, SUTA and FICA match, capped against the employer's YTD wages."""
    gross = to_money(gross_pay)
    ytd_wages = ytd.employer_wage_base
    federal = table.federal

    futa_wages = taxable_wage_this_period(gross, federal.futa.wage_cap, ytd_wages)
    futa = multiply(futa_wages, federal.futa.effective_rate)

    suta_config = table.suta_for(profile.unemployment_state)
    suta_rate = suta_config.applied_rate(company.suta_rate)
    suta_wages = taxable_wage_this_period(gross, suta_config.wage_base, ytd_wages)
    suta = multiply(suta_wages, suta_rate)

    ss_wages = taxable_wage_this_period(gross, federal.social_security.wage_cap, ytd_wages)
    social_security = multiply(ss_wages, federal.social_security.rate)
    medicare = multiply(gross, federal.medicare.rate)

    return EmployerTaxResult(
        futa=futa,
        suta=suta,
        social_security=social_security,
        medicare=medicare,
        total=add(futa, suta, social_security, medicare),
        futa_wages=futa_wages,
        suta_wages=suta_wages,
        suta_rate=suta_rate,
    )
