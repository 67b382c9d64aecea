from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from .errors import MalformedTaxTableError
from .money import ZERO, Number, add, divide, multiply, non_negative, subtract, to_decimal


@dataclass(frozen=True)
class TaxBracket:
    min_income: Decimal
    max_income: Optional[Decimal]  # None for the open-ended top bracket
    rate: Decimal
    base_tax: Decimal = ZERO

    def contains(self, income: Decimal) -> bool:
        if income <= self.min_income:
            return False
        return self.max_income is None or income <= self.max_income


@dataclass(frozen=True)
class BracketTax:
    annual_taxable: Decimal
    annual_tax: Decimal
    period_tax: Decimal
    marginal_rate: Decimal


def validate_brackets(brackets: Sequence[TaxBracket], name: str = "brackets") -> None:
    if not brackets:
        raise MalformedTaxTableError(f"{name}: bracket table is empty")
    if brackets[0].min_income != 0:
        raise MalformedTaxTableError(f"{name}: first bracket must start at 0")
    for index, bracket in enumerate(brackets):
        if bracket.rate < 0 or bracket.rate >= 1:
            raise MalformedTaxTableError(f"{name}[{index}]: rate {bracket.rate} outside [0, 1)")
        if bracket.base_tax < 0:
            raise MalformedTaxTableError(f"{name}[{index}]: negative base tax")
        is_last = index == len(brackets) - 1
        if bracket.max_income is None:
            if not is_last:
                raise MalformedTaxTableError(f"{name}[{index}]: only the top bracket may be open-ended")
            continue
        if is_last:
            raise MalformedTaxTableError(f"{name}: top bracket must be open-ended")
        if bracket.max_income <= bracket.min_income:
            raise MalformedTaxTableError(f"{name}[{index}]: max must exceed min")
        if brackets[index + 1].min_income != bracket.max_income:
            raise MalformedTaxTableError(f"{name}[{index}]: gap or overlap before next bracket")


def find_bracket(income: Number, brackets: Sequence[TaxBracket]) -> Optional[TaxBracket]:
    income = to_decimal(income)
    for bracket in brackets:
        if bracket.contains(income):
            return bracket
    return None


def annual_tax(income: Number, brackets: Sequence[TaxBracket]) -> Decimal:
    bracket = find_bracket(income, brackets)
    if bracket is None:
        return ZERO
    excess = subtract(income, bracket.min_income)
    return add(bracket.base_tax, multiply(excess, bracket.rate))


def period_taxable_income(period_gross: Number, annual_deductions: Number, periods_per_year: int) -> Decimal:
    return non_negative(subtract(period_gross, divide(annual_deductions, periods_per_year)))


def evaluate_period_tax(period_taxable: Number, brackets: Sequence[TaxBracket], periods_per_year: int) -> BracketTax:
    annual_taxable = multiply(non_negative(period_taxable), periods_per_year)
    bracket = find_bracket(annual_taxable, brackets)
    yearly = annual_tax(annual_taxable, brackets)
    return BracketTax(
        annual_taxable=annual_taxable,
        annual_tax=yearly,
        period_tax=divide(yearly, periods_per_year),
        marginal_rate=bracket.rate if bracket else ZERO,
    )
