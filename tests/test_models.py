from datetime import date
from decimal import Decimal

import pytest

from payroll_engine.errors import InvalidInputError
from payroll_engine.models import (
    EmployeeProfile,
    Garnishment,
    GarnishmentType,
    PayFrequency,
    PayPeriod,
    PayPeriodExtras,
    PayType,
    YTDAccumulators,
)


def build_profile(**overrides) -> EmployeeProfile:
    values = dict(
        employee_id="emp-1",
        name="Dana Reyes",
        pay_type=PayType.SALARY,
        pay_rate="52000",
        hire_date=date(2022, 3, 1),
        state="TX",
    )
    values.update(overrides)
    return EmployeeProfile(**values)


def test_periods_per_year():
    assert [f.periods_per_year for f in PayFrequency] == [52, 26, 24, 12]


def test_pay_period_ordering_is_enforced():
    with pytest.raises(InvalidInputError):
        PayPeriod(start=date(2024, 1, 12), end=date(2024, 1, 1), pay_date=date(2024, 1, 19))
    with pytest.raises(InvalidInputError):
        PayPeriod(start=date(2024, 1, 1), end=date(2024, 1, 12), pay_date=date(2024, 1, 10))


def test_profile_amounts_are_coerced_to_decimal():
    profile = build_profile(pay_rate=52000.5)

    assert profile.pay_rate == Decimal("52000.5")
    assert profile.unemployment_state == "TX"
    assert build_profile(work_state="NM").unemployment_state == "NM"


@pytest.mark.parametrize(
    "overrides",
    [
        {"pay_rate": "-1"},
        {"allowances": -1},
        {"additional_withholding": "-5"},
        {"termination_date": date(2021, 1, 1)},
        {"pay_rate": Decimal("Infinity")},
        {"deductions": Decimal("NaN")},
    ],
)
def test_invalid_profiles_are_rejected(overrides):
    with pytest.raises(InvalidInputError):
        build_profile(**overrides)


def test_negative_hours_are_rejected():
    with pytest.raises(InvalidInputError):
        PayPeriodExtras(hours_worked=Decimal("-1"))


def test_non_finite_amounts_are_rejected():
    with pytest.raises(InvalidInputError):
        PayPeriodExtras(hours_worked=Decimal("NaN"))
    with pytest.raises(InvalidInputError):
        PayPeriodExtras(bonus=float("inf"))
    with pytest.raises(InvalidInputError):
        Garnishment(id="g1", type=GarnishmentType.TAX_LEVY, percent=Decimal("sNaN"))


def test_garnishment_cannot_set_amount_and_percent():
    with pytest.raises(InvalidInputError):
        Garnishment(id="g1", type=GarnishmentType.TAX_LEVY, amount="100", percent="10")


def test_garnishment_balance_and_applicability():
    garnishment = Garnishment(
        id="g1",
        type=GarnishmentType.CREDITOR_GARNISHMENT,
        amount="100",
        total_owed="1000",
        total_paid="400",
        expiry=date(2024, 6, 30),
    )

    assert garnishment.remaining_balance == Decimal("600")
    assert garnishment.applies_on(date(2024, 6, 30))
    assert not garnishment.applies_on(date(2024, 7, 1))


def test_employer_wage_base_defaults_to_employee_ytd():
    assert YTDAccumulators(gross="5000").employer_wage_base == Decimal("5000")
    assert YTDAccumulators(gross="5000", employer_wages="7000").employer_wage_base == Decimal("7000")
