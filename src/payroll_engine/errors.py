"""Typed failures raised by the payroll engine.

Callers catch by type (or read ``code``) rather than parsing messages. The
engine never recovers from any of these: a failed calculation produces no
result, and the caller decides whether to skip the employee or abort the run.

    PayrollError
    +-- ConfigurationError
    |   +-- UnsupportedJurisdictionError
    |   +-- MalformedTaxTableError
    +-- InvalidInputError
    +-- CalculationError
"""

from __future__ import annotations

from typing import Iterable, Tuple


class PayrollError(Exception):
    code = "payroll_error"


class ConfigurationError(PayrollError):
    """Tax tables, company settings or an election the engine cannot apply."""

    code = "configuration_error"


class UnsupportedJurisdictionError(ConfigurationError):
    code = "unsupported_jurisdiction"

    def __init__(self, level: str, jurisdiction: str, supported: Iterable[str] = ()) -> None:
        self.level = level
        self.jurisdiction = jurisdiction
        self.supported: Tuple[str, ...] = tuple(sorted(supported))
        message = f"{level.title()} tax calculation not supported for {jurisdiction!r}"
        if self.supported:
            message += f". Supported: {', '.join(self.supported)}"
        super().__init__(message)


class MalformedTaxTableError(ConfigurationError):
    code = "malformed_tax_table"


class InvalidInputError(PayrollError):
    code = "invalid_input"


class CalculationError(PayrollError):
    code = "calculation_error"
