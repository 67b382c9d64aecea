from datetime import date
from decimal import Decimal

import pytest

from payroll_engine.config import DEFAULT_TAX_TABLE_DIR
from payroll_engine.employer import calculate_employer_taxes
from payroll_engine.errors import UnsupportedJurisdictionError
from payroll_engine.models import CompanySettings, EmployeeProfile, PayType, YTDAccumulators
from payroll_engine.tax_tables import TaxTableRepository

GROSS = Decimal("2000")


def build_table():
    return TaxTableRepository(DEFAULT_TAX_TABLE_DIR).load(2024)


def build_profile(**overrides) -> EmployeeProfile:
    values = dict(
        employee_id="emp-1",
        name="Dana Reyes",
        pay_type=PayType.HOURLY,
        pay_rate=Decimal("25"),
        hire_date=date(2022, 3, 1),
        state="TX",
    )
    values.update(overrides)
    return EmployeeProfile(**values)


def calculate(ytd=YTDAccumulators(), company=CompanySettings(), **overrides):
    return calculate_employer_taxes(GROSS, build_profile(**overrides), ytd, company, build_table())


def test_employer_taxes_at_start_of_year():
    result = calculate()

    assert result.futa == Decimal("12.00")
    assert result.suta_rate == Decimal("0.027")
    assert result.suta == Decimal("54.00")
    assert result.social_security == Decimal("124.00")
    assert result.medicare == Decimal("29.00")
    assert result.total == Decimal("219.00")


def test_futa_wage_cap():
    result = calculate(ytd=YTDAccumulators(gross=Decimal("6000")))

    assert result.futa_wages == Decimal("1000.00")
    assert result.futa == Decimal("6.00")
    assert result.suta_wages == Decimal("2000.00")


def test_employer_ytd_wages_override_employee_ytd():
    ytd = YTDAccumulators(gross=Decimal("0"), employer_wages=Decimal("9000"))

    result = calculate(ytd=ytd)

    assert result.futa == Decimal("0.00")
    assert result.suta == Decimal("0.00")
    assert result.social_security == Decimal("124.00")


def test_experience_rate_is_clamped_to_state_range():
    result = calculate(company=CompanySettings(suta_rate=Decimal("0.5")))

    assert result.suta_rate == Decimal("0.063")
    assert result.suta == Decimal("126.00")


def test_unemployment_follows_work_state():
    result = calculate(state="NY", work_state="NJ")

    assert result.suta_rate == Decimal("0.028")
    assert result.suta == Decimal("56.00")


def test_unknown_unemployment_state_raises():
    with pytest.raises(UnsupportedJurisdictionError):
        calculate(work_state="ZZ")
