from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Tuple

from .employer import calculate_employer_taxes
from .errors import ConfigurationError
from .federal import calculate_federal_tax, effective_rate
from .garnishment import calculate_garnishments
from .local import calculate_local_taxes
from .logging import get_logger
from .models import (
    Earnings,
    EmployerTaxResult,
    ExplanationLine,
    FederalTaxResult,
    GarnishmentResult,
    LocalTaxResult,
    PayrollRequest,
    PayrollResult,
    PayType,
    RetirementResult,
    StateTaxResult,
)
from .money import add, divide, multiply, ratio, subtract, to_money
from .proration import prorate_amount, proration_factor
from .retirement import calculate_retirement
from .state import calculate_state_tax
from .tax_tables import TaxTable

logger = get_logger(__name__)

STANDARD_ANNUAL_HOURS = 2080


@dataclass
class PayrollContext:
    tax_table: TaxTable
    periods_per_year: int
    overtime_multiplier: Decimal


class PayrollCalculator:
    """Gross-to-net for one employee and one pay period.

    The calculator holds only an immutable tax table and the overtime
    multiplier, so one instance can be shared across a whole pay run.
    """

    def __init__(self, tax_table: TaxTable, overtime_multiplier: Decimal = Decimal("1.5")):
        self.tax_table = tax_table
        self.overtime_multiplier = Decimal(overtime_multiplier)

    def _check_table_year(self, request: PayrollRequest) -> None:
        pay_year = request.period.pay_date.year
        if self.tax_table.year > pay_year:
            raise ConfigurationError(
                f"Tax table {self.tax_table.year} cannot be used for pay date {request.period.pay_date}"
            )

    def _earnings(self, request: PayrollRequest, ctx: PayrollContext) -> Earnings:
        profile, period, extras = request.profile, request.period, request.extras

        if profile.pay_type == PayType.HOURLY:
            factor = Decimal(1)
            regular_hours = extras.hours_worked
            regular_pay = multiply(extras.hours_worked, profile.pay_rate)
            overtime_pay = multiply(extras.overtime_hours, profile.pay_rate, ctx.overtime_multiplier)
        else:
            factor = proration_factor(period.start, period.end, profile.hire_date, profile.termination_date)
            period_salary = divide(profile.pay_rate, ctx.periods_per_year)
            regular_pay = prorate_amount(period_salary, factor)
            regular_hours = multiply(divide(STANDARD_ANNUAL_HOURS, ctx.periods_per_year), factor)
            hourly_equivalent = ratio(profile.pay_rate, STANDARD_ANNUAL_HOURS)
            overtime_pay = multiply(extras.overtime_hours, hourly_equivalent, ctx.overtime_multiplier)

        total_tips = add(extras.credit_card_tips, extras.cash_tips)
        gross = add(regular_pay, overtime_pay, extras.bonus, extras.commission, total_tips)
        return Earnings(
            regular_hours=to_money(regular_hours),
            overtime_hours=to_money(extras.overtime_hours),
            regular_pay=regular_pay,
            overtime_pay=overtime_pay,
            bonus=to_money(extras.bonus),
            commission=to_money(extras.commission),
            credit_card_tips=to_money(extras.credit_card_tips),
            cash_tips=to_money(extras.cash_tips),
            total_tips=total_tips,
            gross_pay=gross,
            proration_factor=factor,
        )

    @staticmethod
    def _earning_lines(earnings: Earnings) -> List[ExplanationLine]:
        lines = [
            ExplanationLine(
                code="earning:regular",
                label="Regular pay",
                amount=earnings.regular_pay,
                details={"hours": earnings.regular_hours, "proration_factor": earnings.proration_factor},
            )
        ]
        for code, label, amount, details in (
            ("earning:overtime", "Overtime pay", earnings.overtime_pay, {"hours": earnings.overtime_hours}),
            ("earning:bonus", "Bonus", earnings.bonus, {}),
            ("earning:commission", "Commission", earnings.commission, {}),
            ("earning:tips", "Tips", earnings.total_tips,
             {"credit_card": earnings.credit_card_tips, "cash": earnings.cash_tips}),
        ):
            if amount > 0:
                lines.append(ExplanationLine(code=code, label=label, amount=amount, details=details))
        return lines

    @staticmethod
    def _tax_lines(
        federal: FederalTaxResult,
        state: StateTaxResult,
        local: Tuple[LocalTaxResult, ...],
        gross: Decimal,
    ) -> List[ExplanationLine]:
        lines = [
            ExplanationLine(
                code="federal_tax",
                label="Federal withholding",
                amount=federal.income_tax,
                details={
                    "taxable_wages": federal.taxable_wages,
                    "marginal_rate": federal.marginal_rate,
                    "dependent_credit": federal.dependent_credit,
                    "effective_rate": effective_rate(federal, gross),
                },
            ),
            ExplanationLine(
                code="social_security",
                label="Social Security",
                amount=federal.social_security,
                details={"wages": federal.social_security_wages},
            ),
            ExplanationLine(code="medicare", label="Medicare", amount=federal.medicare),
        ]
        if federal.additional_medicare > 0:
            lines.append(
                ExplanationLine(code="additional_medicare", label="Additional Medicare", amount=federal.additional_medicare)
            )
        lines.append(
            ExplanationLine(
                code="state_tax",
                label=f"{state.state} withholding",
                amount=state.income_tax,
                details={"taxable_wages": state.taxable_wages, "marginal_rate": state.marginal_rate},
            )
        )
        for name, amount in state.contributions.items():
            lines.append(ExplanationLine(code="state_contribution", label=name, amount=amount))
        for line in local:
            lines.append(
                ExplanationLine(
                    code=f"local_tax:{line.locality}",
                    label=f"{line.locality} {'resident' if line.resident else 'non-resident'} tax",
                    amount=line.total,
                    details={"wage_tax": line.wage_tax, "head_tax": line.head_tax, "rate": line.rate},
                )
            )
        return lines

    @staticmethod
    def _deduction_lines(
        retirement: RetirementResult,
        garnishments: GarnishmentResult,
        employer: EmployerTaxResult,
    ) -> List[ExplanationLine]:
        lines: List[ExplanationLine] = []
        if retirement.employee_contribution > 0:
            lines.append(
                ExplanationLine(
                    code="deduction:retirement",
                    label="401(k) contribution",
                    amount=retirement.employee_contribution,
                    details={"pre_tax": True, "employer_match": retirement.employer_match},
                )
            )
        for detail in garnishments.details:
            lines.append(
                ExplanationLine(
                    code=f"garnishment:{detail.garnishment_id}",
                    label=detail.type.value.replace("_", " ").title(),
                    amount=detail.actual_amount,
                    details={"target": detail.target_amount, "limit_reached": detail.limit_reached},
                )
            )
        lines.append(
            ExplanationLine(
                code="employer_taxes",
                label="Employer taxes",
                amount=employer.total,
                details={
                    "futa": employer.futa,
                    "suta": employer.suta,
                    "social_security": employer.social_security,
                    "medicare": employer.medicare,
                },
            )
        )
        return lines

    def calculate_employee(self, request: PayrollRequest) -> PayrollResult:
        self._check_table_year(request)
        profile, ytd = request.profile, request.ytd
        ctx = PayrollContext(
            tax_table=self.tax_table,
            periods_per_year=request.period.periods_per_year,
            overtime_multiplier=self.overtime_multiplier,
        )

        earnings = self._earnings(request, ctx)
        gross = earnings.gross_pay

        retirement = calculate_retirement(gross, profile, request.company)
        federal = calculate_federal_tax(
            gross, profile, ytd, ctx.tax_table.federal, ctx.periods_per_year,
            pre_tax_retirement=retirement.employee_contribution,
        )
        state = calculate_state_tax(gross, profile, ytd, ctx.tax_table, ctx.periods_per_year)
        local = calculate_local_taxes(gross, profile, ctx.tax_table, ctx.periods_per_year)
        employer = calculate_employer_taxes(gross, profile, ytd, request.company, ctx.tax_table)

        employee_taxes = add(federal.total, state.total, *(line.total for line in local))
        garnishments = calculate_garnishments(
            subtract(gross, employee_taxes),
            profile.garnishments,
            request.period.pay_date,
            supports_other_dependents=profile.supports_other_dependents,
        )

        total_deductions = add(employee_taxes, retirement.employee_contribution, garnishments.total_deduction)
        # cash tips were already received by the employee
        net_pay = subtract(gross, total_deductions, earnings.cash_tips)
        reimbursements = to_money(request.extras.reimbursements)
        total_pay = add(net_pay, reimbursements)
        total_employer_cost = add(
            subtract(gross, earnings.cash_tips), employer.total, retirement.employer_match
        )

        explanations = (
            self._earning_lines(earnings)
            + self._tax_lines(federal, state, local, gross)
            + self._deduction_lines(retirement, garnishments, employer)
        )
        if reimbursements > 0:
            explanations.append(
                ExplanationLine(code="reimbursement", label="Reimbursements", amount=reimbursements,
                                details={"taxable": False})
            )

        logger.debug(
            "payroll_calculated",
            employee_id=profile.employee_id,
            pay_date=request.period.pay_date.isoformat(),
            gross=str(gross),
            net=str(net_pay),
            employee_taxes=str(employee_taxes),
        )

        return PayrollResult(
            employee_id=profile.employee_id,
            employee_name=profile.name,
            period=request.period,
            tax_year=ctx.tax_table.year,
            earnings=earnings,
            federal=federal,
            state=state,
            local=local,
            retirement=retirement,
            employer_taxes=employer,
            garnishments=garnishments,
            employee_taxes=employee_taxes,
            total_deductions=total_deductions,
            net_pay=net_pay,
            reimbursements=reimbursements,
            total_pay=total_pay,
            total_employer_cost=total_employer_cost,
            explanations=tuple(explanations),
        )
