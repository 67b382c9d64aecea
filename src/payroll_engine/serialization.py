"""JSON-friendly conversion of requests and results.

Amounts travel as decimal strings (floats are accepted on input and read
through ``str``) and dates as ISO-8601 strings. ``result_to_dict`` output is
deterministic, so identical requests serialize to identical JSON.
"""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidInputError
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

_EXTRAS_FIELDS = ("hours_worked", "overtime_hours", "bonus", "commission", "cash_tips",
                  "credit_card_tips", "reimbursements")
_YTD_FIELDS = ("gross", "federal_withholding", "social_security", "medicare", "state_withholding", "net")


def _decimal(value: Any, name: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInputError(f"{name}: expected a decimal amount, got {value!r}")
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name}: expected a decimal amount, got {value!r}") from exc
    if not result.is_finite():
        raise InvalidInputError(f"{name}: amount must be finite, got {value!r}")
    return result


def _bool(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidInputError(f"{name}: expected true or false, got {value!r}")
    return value


def _optional_decimal(data: Mapping[str, Any], key: str, owner: str) -> Optional[Decimal]:
    value = data.get(key)
    return None if value is None else _decimal(value, f"{owner}.{key}")


def _date(value: Any, name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name}: expected an ISO date, got {value!r}") from exc


def _optional_date(data: Mapping[str, Any], key: str, owner: str) -> Optional[date]:
    value = data.get(key)
    return None if value is None else _date(value, f"{owner}.{key}")


def _enum(enum_cls, value: Any, name: str):
    try:
        return enum_cls(str(value).upper())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(f"{name}: {value!r} is not one of {allowed}") from exc


def _require(data: Mapping[str, Any], key: str, owner: str) -> Any:
    if not isinstance(data, Mapping):
        raise InvalidInputError(f"{owner}: expected an object")
    if key not in data or data[key] is None:
        raise InvalidInputError(f"{owner}.{key} is required")
    return data[key]


def garnishment_from_dict(data: Mapping[str, Any]) -> Garnishment:
    if not isinstance(data, Mapping):
        raise InvalidInputError("garnishment: expected an object")
    owner = f"garnishment[{data.get('id', '?')}]"
    try:
        priority = int(data.get("priority", 1))
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{owner}.priority must be an integer") from exc
    return Garnishment(
        id=str(_require(data, "id", owner)),
        type=_enum(GarnishmentType, _require(data, "type", owner), f"{owner}.type"),
        amount=_decimal(data.get("amount", 0), f"{owner}.amount"),
        percent=_optional_decimal(data, "percent", owner),
        total_owed=_optional_decimal(data, "total_owed", owner),
        total_paid=_decimal(data.get("total_paid", 0), f"{owner}.total_paid"),
        active=_bool(data.get("active", True), f"{owner}.active"),
        priority=priority,
        expiry=_optional_date(data, "expiry", owner),
    )


def profile_from_dict(data: Mapping[str, Any]) -> EmployeeProfile:
    owner = "profile"
    if not isinstance(data, Mapping):
        raise InvalidInputError(f"{owner}: expected an object")
    retirement_type = data.get("retirement_type")
    try:
        allowances = int(data.get("allowances", 0))
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{owner}.allowances must be an integer") from exc
    return EmployeeProfile(
        employee_id=str(_require(data, "employee_id", owner)),
        name=str(data.get("name", "")),
        pay_type=_enum(PayType, _require(data, "pay_type", owner), f"{owner}.pay_type"),
        pay_rate=_decimal(_require(data, "pay_rate", owner), f"{owner}.pay_rate"),
        hire_date=_date(_require(data, "hire_date", owner), f"{owner}.hire_date"),
        state=str(_require(data, "state", owner)).upper(),
        filing_status=_enum(FilingStatus, data.get("filing_status", "SINGLE"), f"{owner}.filing_status"),
        allowances=allowances,
        additional_withholding=_decimal(data.get("additional_withholding", 0), f"{owner}.additional_withholding"),
        other_income=_decimal(data.get("other_income", 0), f"{owner}.other_income"),
        deductions=_decimal(data.get("deductions", 0), f"{owner}.deductions"),
        termination_date=_optional_date(data, "termination_date", owner),
        work_state=data.get("work_state"),
        residence_locality=data.get("residence_locality"),
        work_locality=data.get("work_locality"),
        retirement_type=None if retirement_type is None else _enum(
            RetirementType, retirement_type, f"{owner}.retirement_type"
        ),
        retirement_rate=_decimal(data.get("retirement_rate", 0), f"{owner}.retirement_rate"),
        retirement_amount=_decimal(data.get("retirement_amount", 0), f"{owner}.retirement_amount"),
        supports_other_dependents=_bool(
            data.get("supports_other_dependents", False), f"{owner}.supports_other_dependents"
        ),
        garnishments=tuple(garnishment_from_dict(g) for g in data.get("garnishments", ())),
    )


def request_from_dict(data: Mapping[str, Any]) -> PayrollRequest:
    if not isinstance(data, Mapping):
        raise InvalidInputError("payroll request: expected an object")
    period_data = _require(data, "period", "request")
    extras_data = data.get("extras") or {}
    ytd_data = data.get("ytd") or {}
    company_data = data.get("company") or {}

    period = PayPeriod(
        start=_date(_require(period_data, "start", "period"), "period.start"),
        end=_date(_require(period_data, "end", "period"), "period.end"),
        pay_date=_date(_require(period_data, "pay_date", "period"), "period.pay_date"),
        frequency=_enum(PayFrequency, period_data.get("frequency", "BIWEEKLY"), "period.frequency"),
    )
    extras = PayPeriodExtras(
        **{name: _decimal(extras_data.get(name, 0), f"extras.{name}") for name in _EXTRAS_FIELDS}
    )
    ytd = YTDAccumulators(
        **{name: _decimal(ytd_data.get(name, 0), f"ytd.{name}") for name in _YTD_FIELDS},
        employer_wages=_optional_decimal(ytd_data, "employer_wages", "ytd"),
    )
    company = CompanySettings(
        match_rate=_decimal(company_data.get("match_rate", 0), "company.match_rate"),
        match_limit_percent=_optional_decimal(company_data, "match_limit_percent", "company"),
        suta_rate=_optional_decimal(company_data, "suta_rate", "company"),
    )
    return PayrollRequest(
        profile=profile_from_dict(_require(data, "profile", "request")),
        period=period,
        extras=extras,
        ytd=ytd,
        company=company,
    )


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    return value


def result_to_dict(result: PayrollResult) -> Dict[str, Any]:
    data = _plain(result)
    data["gross_pay"] = str(result.gross_pay)
    data["taxes_withheld"] = _plain(result.taxes_withheld())
    return data


def dumps(data: Any) -> str:
    return json.dumps(_plain(data), indent=2, sort_keys=True)
