from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Tuple

from .calculator import PayrollCalculator
from .config import Settings, get_settings
from .errors import PayrollError
from .logging import configure_logging
from .models import PayrollRequest
from .monitoring import configure_error_monitoring
from .observability import configure_observability
from .serialization import dumps, request_from_dict, result_to_dict
from .tax_tables import TaxTableRepository
from .wizard import EmployeeError, PreviewWizard


def repository_from_args(args: argparse.Namespace, settings: Settings) -> TaxTableRepository:
    return TaxTableRepository(Path(args.tables) if args.tables else settings.tax_table_dir)


def read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def cmd_calculate(args: argparse.Namespace, settings: Settings) -> int:
    request = request_from_dict(read_json(args.request))
    table = repository_from_args(args, settings).for_pay_date(request.period.pay_date)
    calculator = PayrollCalculator(table, overtime_multiplier=settings.overtime_multiplier)
    result = calculator.calculate_employee(request)
    print(dumps(result_to_dict(result)))
    return 0


def _parse_batch(records: List[Any]) -> Tuple[List[PayrollRequest], List[EmployeeError]]:
    requests: List[PayrollRequest] = []
    errors: List[EmployeeError] = []
    for index, record in enumerate(records):
        try:
            requests.append(request_from_dict(record))
        except PayrollError as exc:
            profile = record.get("profile") if isinstance(record, dict) else None
            employee_id = str(profile.get("employee_id")) if isinstance(profile, dict) else f"#{index}"
            errors.append(EmployeeError(employee_id=employee_id, code=exc.code, message=str(exc)))
    return requests, errors


def cmd_batch(args: argparse.Namespace, settings: Settings) -> int:
    data = read_json(args.requests)
    records = data.get("requests", []) if isinstance(data, dict) else data
    requests, parse_errors = _parse_batch(records)

    year = args.year
    if year is None:
        year = max((r.period.pay_date.year for r in requests), default=None)
    totals = None
    if year is not None:
        table = repository_from_args(args, settings).load(year)
        wizard = PreviewWizard(PayrollCalculator(table, overtime_multiplier=settings.overtime_multiplier))
        totals = wizard.preview(requests)

    errors = parse_errors + (totals.errors if totals else [])
    summary = {
        "employees": {
            employee_id: {
                "gross_pay": result.gross_pay,
                "net_pay": result.net_pay,
                "total_pay": result.total_pay,
                "total_employer_cost": result.total_employer_cost,
            }
            for employee_id, result in (totals.employees.items() if totals else [])
        },
        "errors": [{"employee_id": e.employee_id, "code": e.code, "message": e.message} for e in errors],
    }
    if totals:
        summary["totals"] = {
            "gross_pay": totals.gross_pay,
            "net_pay": totals.total_net_pay,
            "total_pay": totals.total_pay,
            "taxes_withheld": totals.taxes_withheld,
            "employer_taxes": totals.employer_taxes,
            "total_employer_cost": totals.total_employer_cost,
        }
    print(dumps(summary))
    return 1 if errors else 0


def cmd_tables(args: argparse.Namespace, settings: Settings) -> int:
    repo = repository_from_args(args, settings)
    years = repo.available_years()
    if not years:
        print(f"No tax tables found in {repo.base_path}")
        return 1
    for year in years:
        table = repo.load(year)
        print(f"{year} version {table.version} effective {table.effective_date.isoformat()}")
    return 0


def cmd_jurisdictions(args: argparse.Namespace, settings: Settings) -> int:
    repo = repository_from_args(args, settings)
    if args.year is None:
        years = repo.available_years()
        if not years:
            print(f"No tax tables found in {repo.base_path}")
            return 1
        table = repo.load(years[-1])
    else:
        table = repo.load(args.year)

    no_tax = set(table.no_income_tax_states())
    print(f"Tax year {table.year}")
    print("States:")
    for code in table.supported_states():
        state = table.state(code)
        method = "no income tax" if code in no_tax else state.income_tax
        print(f"  {code} {state.name} ({method})")
    print("Localities:")
    for code in sorted(table.localities):
        locality = table.locality(code)
        print(f"  {code} {locality.name}, {locality.state}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Payroll gross-to-net calculation engine")
    parser.add_argument("--tables", help="Directory of {year}.json tax tables")
    sub = parser.add_subparsers(dest="command", required=True)

    calculate = sub.add_parser("calculate", help="Calculate one employee's pay from a JSON request")
    calculate.add_argument("request")
    calculate.set_defaults(func=cmd_calculate)

    batch = sub.add_parser("batch", help="Preview a pay run from a JSON list of requests")
    batch.add_argument("requests")
    batch.add_argument("--year", type=int, help="Tax year to use (defaults to the latest pay date)")
    batch.set_defaults(func=cmd_batch)

    tables = sub.add_parser("tables", help="List available tax table years")
    tables.set_defaults(func=cmd_tables)

    jurisdictions = sub.add_parser("jurisdictions", help="List supported states and localities")
    jurisdictions.add_argument("--year", type=int)
    jurisdictions.set_defaults(func=cmd_jurisdictions)

    for subparser in (calculate, batch, tables, jurisdictions):
        subparser.add_argument("--tables", default=argparse.SUPPRESS, help="Directory of {year}.json tax tables")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    configure_error_monitoring(settings)
    configure_observability(settings)
    try:
        return args.func(args, settings)
    except PayrollError as exc:
        print(f"error [{exc.code}]: {exc}", file=sys.stderr)
        return 2
    except (OSError, json.JSONDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
