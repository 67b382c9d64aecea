from decimal import Decimal

import pytest

from payroll_engine.brackets import (
    TaxBracket,
    annual_tax,
    evaluate_period_tax,
    find_bracket,
    period_taxable_income,
    validate_brackets,
)
from payroll_engine.config import DEFAULT_TAX_TABLE_DIR
from payroll_engine.errors import MalformedTaxTableError
from payroll_engine.models import FilingStatus
from payroll_engine.tax_tables import TaxTableRepository


def single_brackets():
    table = TaxTableRepository(DEFAULT_TAX_TABLE_DIR).load(2024)
    return table.federal.brackets_for(FilingStatus.SINGLE)


def bracket(low, high, rate, base="0"):
    return TaxBracket(Decimal(low), None if high is None else Decimal(high), Decimal(rate), Decimal(base))


def test_annual_tax_uses_base_plus_marginal_excess():
    assert annual_tax(Decimal("50000"), single_brackets()) == Decimal("6053.00")


def test_boundary_income_belongs_to_lower_bracket():
    brackets = single_brackets()

    assert find_bracket(Decimal("11600"), brackets).rate == Decimal("0.10")
    assert find_bracket(Decimal("11600.01"), brackets).rate == Decimal("0.12")
    assert annual_tax(Decimal("11600"), brackets) == Decimal("1160.00")


def test_bracket_table_is_continuous_at_boundaries():
    brackets = single_brackets()
    for lower, upper in zip(brackets, brackets[1:]):
        assert annual_tax(lower.max_income, brackets) == upper.base_tax


def test_zero_income_has_no_bracket_and_no_tax():
    assert find_bracket(0, single_brackets()) is None
    assert annual_tax(0, single_brackets()) == Decimal("0.00")


def test_evaluate_period_tax_annualizes_and_deannualizes():
    result = evaluate_period_tax(Decimal("1923.08"), single_brackets(), 26)

    assert result.annual_taxable == Decimal("50000.08")
    assert result.annual_tax == Decimal("6053.02")
    assert result.period_tax == Decimal("232.81")
    assert result.marginal_rate == Decimal("0.22")


def test_period_taxable_income_is_floored():
    assert period_taxable_income(1000, 26000, 26) == Decimal("0.00")
    assert period_taxable_income(500, 26000, 26) == Decimal("0.00")
    assert period_taxable_income(2000, 26000, 26) == Decimal("1000.00")


@pytest.mark.parametrize(
    "brackets",
    [
        [],
        [bracket("100", None, "0.1")],
        [bracket("0", "100", "0.1"), bracket("150", None, "0.2")],
        [bracket("0", "100", "0.1"), bracket("100", "200", "0.2")],
        [bracket("0", None, "0.1"), bracket("100", None, "0.2")],
        [bracket("0", None, "1.5")],
        [bracket("0", None, "-0.1")],
        [bracket("0", "100", "0.1", base="-1"), bracket("100", None, "0.2")],
    ],
)
def test_malformed_tables_are_rejected(brackets):
    with pytest.raises(MalformedTaxTableError):
        validate_brackets(brackets, name="test")
