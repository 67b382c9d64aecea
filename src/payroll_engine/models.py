from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .errors import InvalidInputError
from .money import ZERO, to_decimal


class PayFrequency(str, Enum):
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    SEMIMONTHLY = "SEMIMONTHLY"
    MONTHLY = "MONTHLY"

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self]


_PERIODS_PER_YEAR = {
    PayFrequency.WEEKLY: 52,
    PayFrequency.BIWEEKLY: 26,
    PayFrequency.SEMIMONTHLY: 24,
    PayFrequency.MONTHLY: 12,
}


class PayType(str, Enum):
    HOURLY = "HOURLY"
    SALARY = "SALARY"


class FilingStatus(str, Enum):
    SINGLE = "SINGLE"
    MARRIED_FILING_JOINTLY = "MARRIED_FILING_JOINTLY"
    MARRIED_FILING_SEPARATELY = "MARRIED_FILING_SEPARATELY"
    HEAD_OF_HOUSEHOLD = "HEAD_OF_HOUSEHOLD"


class RetirementType(str, Enum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class GarnishmentType(str, Enum):
    CHILD_SUPPORT = "CHILD_SUPPORT"
    TAX_LEVY = "TAX_LEVY"
    CREDITOR_GARNISHMENT = "CREDITOR_GARNISHMENT"
    BANKRUPTCY = "BANKRUPTCY"


def _require_non_negative(owner: str, **values: Decimal) -> None:
    for name, value in values.items():
        if value is not None and value < 0:
            raise InvalidInputError(f"{owner}.{name} must not be negative (got {value})")


@dataclass(frozen=True)
class PayPeriod:
    start: date
    end: date
    pay_date: date
    frequency: PayFrequency = PayFrequency.BIWEEKLY

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise InvalidInputError(f"Pay period end {self.end} must be after start {self.start}")
        if self.pay_date < self.end:
            raise InvalidInputError(f"Pay date {self.pay_date} precedes period end {self.end}")

    @property
    def periods_per_year(self) -> int:
        return self.frequency.periods_per_year


@dataclass(frozen=True)
class Garnishment:
    id: str
    type: GarnishmentType
    amount: Decimal = ZERO
    percent: Optional[Decimal] = None
    total_owed: Optional[Decimal] = None
    total_paid: Decimal = ZERO
    active: bool = True
    priority: int = 1
    expiry: Optional[date] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "total_paid", to_decimal(self.total_paid))
        if self.percent is not None:
            object.__setattr__(self, "percent", to_decimal(self.percent))
        if self.total_owed is not None:
            object.__setattr__(self, "total_owed", to_decimal(self.total_owed))
        _require_non_negative(
            f"Garnishment[{self.id}]",
            amount=self.amount,
            percent=self.percent,
            total_owed=self.total_owed,
            total_paid=self.total_paid,
        )
        if self.amount > 0 and self.percent is not None and self.percent > 0:
            raise InvalidInputError(f"Garnishment {self.id} sets both a fixed amount and a percent")

    @property
    def remaining_balance(self) -> Optional[Decimal]:
        if self.total_owed is None:
            return None
        return self.total_owed - self.total_paid

    def is_exhausted(self) -> bool:
        balance = self.remaining_balance
        return balance is not None and balance <= 0

    def applies_on(self, pay_date: date) -> bool:
        if not self.active or self.is_exhausted():
            return False
        return self.expiry is None or self.expiry >= pay_date


@dataclass(frozen=True)
class EmployeeProfile:
    employee_id: str
    name: str
    pay_type: PayType
    pay_rate: Decimal
    hire_date: date
    state: str
    filing_status: FilingStatus = FilingStatus.SINGLE
    allowances: int = 0
    additional_withholding: Decimal = ZERO
    other_income: Decimal = ZERO
    deductions: Decimal = ZERO
    termination_date: Optional[date] = None
    work_state: Optional[str] = None
    residence_locality: Optional[str] = None
    work_locality: Optional[str] = None
    retirement_type: Optional[RetirementType] = None
    retirement_rate: Decimal = ZERO
    retirement_amount: Decimal = ZERO
    supports_other_dependents: bool = False
    garnishments: Tuple[Garnishment, ...] = ()

    def __post_init__(self) -> None:
        for name in ("pay_rate", "additional_withholding", "other_income", "deductions",
                     "retirement_rate", "retirement_amount"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        object.__setattr__(self, "garnishments", tuple(self.garnishments))
        _require_non_negative(
            f"EmployeeProfile[{self.employee_id}]",
            pay_rate=self.pay_rate,
            allowances=Decimal(self.allowances),
            additional_withholding=self.additional_withholding,
            other_income=self.other_income,
            deductions=self.deductions,
            retirement_rate=self.retirement_rate,
            retirement_amount=self.retirement_amount,
        )
        if self.termination_date is not None and self.termination_date < self.hire_date:
            raise InvalidInputError(
                f"Employee {self.employee_id} terminated {self.termination_date} before hire {self.hire_date}"
            )

    @property
    def unemployment_state(self) -> str:
        return self.work_state or self.state


@dataclass(frozen=True)
class CompanySettings:
    match_rate: Decimal = ZERO  # percent of the employee contribution
    match_limit_percent: Optional[Decimal] = None  # percent of gross eligible for match
    suta_rate: Optional[Decimal] = None  # experience rate as a fraction, e.g. 0.027

    def __post_init__(self) -> None:
        object.__setattr__(self, "match_rate", to_decimal(self.match_rate))
        if self.match_limit_percent is not None:
            object.__setattr__(self, "match_limit_percent", to_decimal(self.match_limit_percent))
        if self.suta_rate is not None:
            object.__setattr__(self, "suta_rate", to_decimal(self.suta_rate))
        _require_non_negative(
            "CompanySettings",
            match_rate=self.match_rate,
            match_limit_percent=self.match_limit_percent,
            suta_rate=self.suta_rate,
        )


@dataclass(frozen=True)
class PayPeriodExtras:
    hours_worked: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    bonus: Decimal = ZERO
    commission: Decimal = ZERO
    cash_tips: Decimal = ZERO
    credit_card_tips: Decimal = ZERO
    reimbursements: Decimal = ZERO

    def __post_init__(self) -> None:
        values = {}
        for name in ("hours_worked", "overtime_hours", "bonus", "commission", "cash_tips",
                     "credit_card_tips", "reimbursements"):
            value = to_decimal(getattr(self, name))
            object.__setattr__(self, name, value)
            values[name] = value
        _require_non_negative("PayPeriodExtras", **values)


@dataclass(frozen=True)
class YTDAccumulators:
    gross: Decimal = ZERO
    federal_withholding: Decimal = ZERO
    social_security: Decimal = ZERO
    medicare: Decimal = ZERO
    state_withholding: Decimal = ZERO
    net: Decimal = ZERO
    employer_wages: Optional[Decimal] = None

    def __post_init__(self) -> None:
        for name in ("gross", "federal_withholding", "social_security", "medicare",
                     "state_withholding", "net"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        if self.employer_wages is not None:
            object.__setattr__(self, "employer_wages", to_decimal(self.employer_wages))
        _require_non_negative("YTDAccumulators", gross=self.gross, employer_wages=self.employer_wages)

    @property
    def employer_wage_base(self) -> Decimal:
        """YTD wages the employer's own caps (FUTA, SUTA, employer FICA) are tracked against."""
        return self.gross if self.employer_wages is None else self.employer_wages


@dataclass(frozen=True)
class PayrollRequest:
    profile: EmployeeProfile
    period: PayPeriod
    extras: PayPeriodExtras = field(default_factory=PayPeriodExtras)
    ytd: YTDAccumulators = field(default_factory=YTDAccumulators)
    company: CompanySettings = field(default_factory=CompanySettings)


@dataclass(frozen=True)
class ExplanationLine:
    code: str
    label: str
    amount: Decimal
    details: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))


@dataclass(frozen=True)
class Earnings:
    regular_hours: Decimal
    overtime_hours: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    commission: Decimal
    credit_card_tips: Decimal
    cash_tips: Decimal
    total_tips: Decimal
    gross_pay: Decimal
    proration_factor: Decimal = Decimal(1)


@dataclass(frozen=True)
class FederalTaxResult:
    income_tax: Decimal
    social_security: Decimal
    medicare: Decimal
    additional_medicare: Decimal
    total: Decimal
    taxable_wages: Decimal
    standard_deduction: Decimal
    dependent_credit: Decimal
    social_security_wages: Decimal
    marginal_rate: Decimal


@dataclass(frozen=True)
class StateTaxResult:
    state: str
    income_tax: Decimal
    sdi: Decimal
    sui: Decimal
    total: Decimal
    taxable_wages: Decimal
    marginal_rate: Decimal
    contributions: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "contributions", MappingProxyType(dict(self.contributions)))


@dataclass(frozen=True)
class LocalTaxResult:
    locality: str
    resident: bool
    wage_tax: Decimal
    head_tax: Decimal
    total: Decimal
    rate: Decimal
    tax_type: str


@dataclass(frozen=True)
class EmployerTaxResult:
    futa: Decimal
    suta: Decimal
    social_security: Decimal
    medicare: Decimal
    total: Decimal
    futa_wages: Decimal
    suta_wages: Decimal
    suta_rate: Decimal


@dataclass(frozen=True)
class RetirementResult:
    employee_contribution: Decimal
    employer_match: Decimal


@dataclass(frozen=True)
class GarnishmentDetail:
    garnishment_id: str
    type: GarnishmentType
    target_amount: Decimal
    actual_amount: Decimal
    limit_reached: bool


@dataclass(frozen=True)
class GarnishmentResult:
    disposable_earnings: Decimal
    ceiling: Decimal
    total_deduction: Decimal
    details: Tuple[GarnishmentDetail, ...] = ()


@dataclass(frozen=True)
class PayrollResult:
    employee_id: str
    employee_name: str
    period: PayPeriod
    tax_year: int
    earnings: Earnings
    federal: FederalTaxResult
    state: StateTaxResult
    local: Tuple[LocalTaxResult, ...]
    retirement: RetirementResult
    employer_taxes: EmployerTaxResult
    garnishments: GarnishmentResult
    employee_taxes: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    reimbursements: Decimal
    total_pay: Decimal
    total_employer_cost: Decimal
    explanations: Tuple[ExplanationLine, ...] = ()

    @property
    def gross_pay(self) -> Decimal:
        return self.earnings.gross_pay

    def taxes_withheld(self) -> Dict[str, Decimal]:
        withheld = {
            "federal_income": self.federal.income_tax,
            "social_security": self.federal.social_security,
            "medicare": self.federal.medicare + self.federal.additional_medicare,
            "state_income": self.state.income_tax,
            "state_sdi": self.state.sdi,
            "state_sui": self.state.sui,
        }
        local_total = sum((local.total for local in self.local), ZERO)
        if self.local:
            withheld["local"] = local_total
        return withheld
