from datetime import date
from decimal import Decimal

from payroll_engine.calculator import PayrollCalculator
from payroll_engine.config import DEFAULT_TAX_TABLE_DIR
from payroll_engine.models import EmployeeProfile, PayPeriod, PayPeriodExtras, PayrollRequest, PayType
from payroll_engine.tax_tables import TaxTableRepository
from payroll_engine.wizard import PreviewWizard

PERIOD = PayPeriod(start=date(2024, 1, 1), end=date(2024, 1, 12), pay_date=date(2024, 1, 19))


def build_wizard() -> PreviewWizard:
    return PreviewWizard(PayrollCalculator(TaxTableRepository(DEFAULT_TAX_TABLE_DIR).load(2024)))


def build_request(employee_id: str, state: str = "TX") -> PayrollRequest:
    profile = EmployeeProfile(
        employee_id=employee_id,
        name=f"Employee {employee_id}",
        pay_type=PayType.HOURLY,
        pay_rate=Decimal("25"),
        hire_date=date(2022, 3, 1),
        state=state,
    )
    return PayrollRequest(profile=profile, period=PERIOD, extras=PayPeriodExtras(hours_worked=Decimal("80")))


def test_preview_aggregates_totals():
    totals = build_wizard().preview([build_request("a"), build_request("b")])

    assert sorted(totals.employees) == ["a", "b"]
    assert totals.errors == []
    assert totals.gross_pay == Decimal("4000.00")
    assert totals.total_net_pay == Decimal("3366.62")
    assert totals.taxes_withheld["federal_income"] == Decimal("327.38")
    assert totals.taxes_withheld["social_security"] == Decimal("248.00")
    assert totals.employer_taxes["futa"] == Decimal("24.00")
    assert totals.total_employer_cost == Decimal("4438.00")


def test_bad_employee_is_reported_without_failing_the_batch():
    totals = build_wizard().preview([build_request("a"), build_request("bad", state="ZZ"), build_request("c")])

    assert totals.succeeded == 2
    assert totals.failed == 1
    (error,) = totals.errors
    assert error.employee_id == "bad"
    assert error.code == "unsupported_jurisdiction"
    assert "ZZ" in error.message
    assert totals.gross_pay == Decimal("4000.00")


def test_empty_batch():
    totals = build_wizard().preview([])

    assert totals.employees == {}
    assert totals.gross_pay == Decimal("0.00")
