"""Gross-to-net payroll calculation for US employees."""

from .calculator import PayrollCalculator
from .errors import (
    CalculationError,
    ConfigurationError,
    InvalidInputError,
    MalformedTaxTableError,
    PayrollError,
    UnsupportedJurisdictionError,
)
from .models import (
    CompanySettings,
    EmployeeProfile,
    FilingStatus,
    Garnishment,
    GarnishmentType,
    PayFrequency,
    PayPeriod,
    PayPeriodExtras,
    PayrollRequest,
    PayrollResult,
    PayType,
    RetirementType,
    YTDAccumulators,
)
from .tax_tables import TaxTable, TaxTableRepository
from .wizard import EmployeeError, PreviewTotals, PreviewWizard

__all__ = [
    "CalculationError",
    "CompanySettings",
    "ConfigurationError",
    "EmployeeError",
    "EmployeeProfile",
    "FilingStatus",
    "Garnishment",
    "GarnishmentType",
    "InvalidInputError",
    "MalformedTaxTableError",
    "PayFrequency",
    "PayPeriod",
    "PayPeriodExtras",
    "PayType",
    "PayrollCalculator",
    "PayrollError",
    "PayrollRequest",
    "PayrollResult",
    "PreviewTotals",
    "PreviewWizard",
    "RetirementType",
    "TaxTable",
    "TaxTableRepository",
    "UnsupportedJurisdictionError",
    "YTDAccumulators",
]
