import json
from datetime import date
from decimal import Decimal

import pytest

from payroll_engine.calculator import PayrollCalculator
from payroll_engine.config import DEFAULT_TAX_TABLE_DIR
from payroll_engine.errors import InvalidInputError
from payroll_engine.models import FilingStatus, GarnishmentType, PayFrequency, PayType
from payroll_engine.serialization import dumps, request_from_dict, result_to_dict
from payroll_engine.tax_tables import TaxTableRepository


def request_data(**profile_overrides) -> dict:
    profile = {
        "employee_id": "emp-1",
        "name": "Dana Reyes",
        "pay_type": "hourly",
        "pay_rate": "25",
        "hire_date": "2022-03-01",
        "state": "tx",
        "filing_status": "MARRIED_FILING_JOINTLY",
        "garnishments": [{"id": "g1", "type": "CHILD_SUPPORT", "amount": "150.00", "priority": 1}],
    }
    profile.update(profile_overrides)
    return {
        "profile": profile,
        "period": {"start": "2024-01-01", "end": "2024-01-12", "pay_date": "2024-01-19", "frequency": "BIWEEKLY"},
        "extras": {"hours_worked": "80", "cash_tips": 12.5},
        "ytd": {"gross": "1000.00", "employer_wages": "1200.00"},
        "company": {"match_rate": "50", "suta_rate": "0.03"},
    }


def test_request_from_dict_builds_typed_request():
    request = request_from_dict(request_data())

    assert request.profile.pay_type == PayType.HOURLY
    assert request.profile.state == "TX"
    assert request.profile.filing_status == FilingStatus.MARRIED_FILING_JOINTLY
    assert request.profile.garnishments[0].type == GarnishmentType.CHILD_SUPPORT
    assert request.period.frequency == PayFrequency.BIWEEKLY
    assert request.period.pay_date == date(2024, 1, 19)
    assert request.extras.cash_tips == Decimal("12.5")
    assert request.ytd.employer_wage_base == Decimal("1200.00")
    assert request.company.suta_rate == Decimal("0.03")


def test_optional_sections_default():
    data = request_data()
    del data["extras"], data["ytd"], data["company"]

    request = request_from_dict(data)

    assert request.extras.hours_worked == 0
    assert request.ytd.gross == 0
    assert request.company.match_rate == 0


@pytest.mark.parametrize(
    "overrides",
    [
        {"pay_rate": "lots"},
        {"hire_date": "03/01/2022"},
        {"pay_type": "PIECEWORK"},
        {"state": None},
        {"allowances": "two"},
        {"garnishments": [{"id": "g1"}]},
        {"pay_rate": "NaN"},
        {"supports_other_dependents": "false"},
        {"garnishments": [{"id": "g1", "type": "TAX_LEVY", "percent": "10", "active": "false"}]},
    ],
)
def test_malformed_requests_raise_invalid_input(overrides):
    with pytest.raises(InvalidInputError):
        request_from_dict(request_data(**overrides))


def test_boolean_flags_are_read_from_json_booleans():
    garnishment = {"id": "g1", "type": "TAX_LEVY", "percent": "10", "active": False}

    request = request_from_dict(request_data(supports_other_dependents=True, garnishments=[garnishment]))

    assert request.profile.supports_other_dependents is True
    assert request.profile.garnishments[0].active is False


def test_missing_period_raises_invalid_input():
    data = request_data()
    del data["period"]

    with pytest.raises(InvalidInputError):
        request_from_dict(data)


def test_result_to_dict_renders_decimal_strings():
    calc = PayrollCalculator(TaxTableRepository(DEFAULT_TAX_TABLE_DIR).load(2024))
    result = calc.calculate_employee(request_from_dict(request_data()))

    data = result_to_dict(result)
    rendered = dumps(data)

    assert data["gross_pay"] == "2012.50"
    assert data["period"]["pay_date"] == "2024-01-19"
    assert data["garnishments"]["details"][0]["type"] == "CHILD_SUPPORT"
    assert json.loads(rendered)["net_pay"] == data["net_pay"]
    assert rendered == dumps(result_to_dict(calc.calculate_employee(request_from_dict(request_data()))))
