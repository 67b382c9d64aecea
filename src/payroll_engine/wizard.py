from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List

from opentelemetry import metrics, trace

from .calculator import PayrollCalculator
from .errors import PayrollError
from .logging import get_logger
from .models import PayrollRequest, PayrollResult
from .money import ZERO, add

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)
meter = metrics.get_meter(__name__)

calculations_counter = meter.create_counter(
    "payroll.calculations", description="Employee pay calculations by outcome"
)


@dataclass(frozen=True)
class EmployeeError:
    employee_id: str
    code: str
    message: str


@dataclass
class PreviewTotals:
    employees: Dict[str, PayrollResult]
    errors: List[EmployeeError] = field(default_factory=list)
    gross_pay: Decimal = ZERO
    total_net_pay: Decimal = ZERO
    total_pay: Decimal = ZERO
    taxes_withheld: Dict[str, Decimal] = field(default_factory=dict)
    employer_taxes: Dict[str, Decimal] = field(default_factory=dict)
    total_employer_cost: Decimal = ZERO

    @property
    def succeeded(self) -> int:
        return len(self.employees)

    @property
    def failed(self) -> int:
        return len(self.errors)


def _accumulate(totals: Dict[str, Decimal], values: Dict[str, Decimal]) -> None:
    for name, value in values.items():
        totals[name] = add(totals.get(name, ZERO), value)


class PreviewWizard:
    """Runs a pay preview over many employees.

    A failing employee is recorded in ``errors`` and left out of the totals;
    the rest of the batch still runs.
    """

    def __init__(self, calculator: PayrollCalculator):
        self.calculator = calculator

    def preview(self, requests: Iterable[PayrollRequest]) -> PreviewTotals:
        totals = PreviewTotals(employees={})

        for request in requests:
            employee_id = request.profile.employee_id
            with tracer.start_as_current_span("payroll.calculate_employee") as span:
                span.set_attribute("payroll.employee_id", employee_id)
                try:
                    result = self.calculator.calculate_employee(request)
                except PayrollError as exc:
                    span.record_exception(exc)
                    logger.warning("payroll_employee_failed", employee_id=employee_id, code=exc.code, error=str(exc))
                    calculations_counter.add(1, {"outcome": "error", "code": exc.code})
                    totals.errors.append(EmployeeError(employee_id=employee_id, code=exc.code, message=str(exc)))
                    continue
            calculations_counter.add(1, {"outcome": "ok"})

            totals.employees[employee_id] = result
            totals.gross_pay = add(totals.gross_pay, result.gross_pay)
            totals.total_net_pay = add(totals.total_net_pay, result.net_pay)
            totals.total_pay = add(totals.total_pay, result.total_pay)
            totals.total_employer_cost = add(totals.total_employer_cost, result.total_employer_cost)
            _accumulate(totals.taxes_withheld, result.taxes_withheld())
            employer = result.employer_taxes
            _accumulate(
                totals.employer_taxes,
                {
                    "futa": employer.futa,
                    "suta": employer.suta,
                    "social_security": employer.social_security,
                    "medicare": employer.medicare,
                },
            )

        logger.info("payroll_preview_completed", succeeded=totals.succeeded, failed=totals.failed)
        return totals
