from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .brackets import TaxBracket, validate_brackets
from .errors import ConfigurationError, MalformedTaxTableError, UnsupportedJurisdictionError
from .logging import get_logger
from .models import FilingStatus

logger = get_logger(__name__)

BracketTable = Dict[FilingStatus, Tuple[TaxBracket, ...]]


class _TableModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


def _check_bracket_tables(tables: BracketTable, owner: str) -> BracketTable:
    for status, brackets in tables.items():
        validate_brackets(brackets, name=f"{owner}[{status.value}]")
    return tables


def _by_status(values: Dict[FilingStatus, Decimal], status: FilingStatus) -> Decimal:
    if status in values:
        return values[status]
    return values.get(FilingStatus.SINGLE, Decimal(0))


class SocialSecurityConfig(_TableModel):
    rate: Decimal
    wage_cap: Decimal


class MedicareConfig(_TableModel):
    rate: Decimal
    additional_rate: Decimal
    additional_threshold: Decimal


class FutaConfig(_TableModel):
    rate: Decimal
    credit_rate: Decimal
    effective_rate: Decimal
    wage_cap: Decimal


class SutaConfig(_TableModel):
    wage_base: Decimal
    new_employer_rate: Decimal
    min_rate: Decimal
    max_rate: Decimal

    @model_validator(mode="after")
    def check_range(self) -> "SutaConfig":
        if not self.min_rate <= self.new_employer_rate <= self.max_rate:
            raise ValueError("new_employer_rate must fall within [min_rate, max_rate]")
        return self

    def applied_rate(self, experience_rate: Optional[Decimal]) -> Decimal:
        if experience_rate is None:
            return self.new_employer_rate
        return max(self.min_rate, min(experience_rate, self.max_rate))


class FederalTable(_TableModel):
    standard_deduction: Dict[FilingStatus, Decimal]
    brackets: BracketTable
    dependent_credit: Decimal
    social_security: SocialSecurityConfig
    medicare: MedicareConfig
    futa: FutaConfig

    @field_validator("brackets")
    @classmethod
    def check_brackets(cls, value: BracketTable) -> BracketTable:
        missing = set(FilingStatus) - set(value)
        if missing:
            raise ValueError(f"federal brackets missing filing statuses: {sorted(s.value for s in missing)}")
        return _check_bracket_tables(value, "federal")

    def brackets_for(self, status: FilingStatus) -> Tuple[TaxBracket, ...]:
        return self.brackets[status]

    def standard_deduction_for(self, status: FilingStatus) -> Decimal:
        return _by_status(self.standard_deduction, status)


class Contribution(_TableModel):
    kind: Literal["sdi", "sui"]
    name: str
    rate: Decimal
    wage_cap: Optional[Decimal] = None


class StateTable(_TableModel):
    name: str
    income_tax: Literal["none", "flat", "progressive"]
    flat_rate: Optional[Decimal] = None
    brackets: BracketTable = {}
    filing_status_map: Dict[FilingStatus, FilingStatus] = {}
    standard_deduction: Dict[FilingStatus, Decimal] = {}
    exemption: Dict[FilingStatus, Decimal] = {}
    exemption_credit: Dict[FilingStatus, Decimal] = {}
    contributions: Tuple[Contribution, ...] = ()
    suta: Optional[SutaConfig] = None

    @model_validator(mode="after")
    def check_method(self) -> "StateTable":
        if self.income_tax == "flat" and self.flat_rate is None:
            raise ValueError(f"{self.name}: flat income tax requires flat_rate")
        if self.income_tax == "progressive":
            if FilingStatus.SINGLE not in self.brackets:
                raise ValueError(f"{self.name}: progressive income tax requires SINGLE brackets")
            _check_bracket_tables(self.brackets, self.name)
        if self.income_tax == "none" and (self.flat_rate is not None or self.brackets):
            raise ValueError(f"{self.name}: no-income-tax state cannot carry rates")
        return self

    def status_for(self, status: FilingStatus) -> FilingStatus:
        return self.filing_status_map.get(status, status)

    def brackets_for(self, status: FilingStatus) -> Tuple[TaxBracket, ...]:
        mapped = self.status_for(status)
        return self.brackets.get(mapped) or self.brackets[FilingStatus.SINGLE]

    def annual_deductions_for(self, status: FilingStatus) -> Decimal:
        mapped = self.status_for(status)
        return _by_status(self.standard_deduction, mapped) + _by_status(self.exemption, mapped)

    def exemption_credit_for(self, status: FilingStatus) -> Decimal:
        return _by_status(self.exemption_credit, self.status_for(status))


class HeadTax(_TableModel):
    annual_amount: Decimal
    annual_wage_threshold: Decimal = Decimal(0)


class LocalityTable(_TableModel):
    name: str
    state: str
    resident_rate: Optional[Decimal] = None
    resident_brackets: BracketTable = {}
    nonresident_rate: Optional[Decimal] = None  # None: non-residents are not taxed
    head_tax: Optional[HeadTax] = None

    @model_validator(mode="after")
    def check_resident_method(self) -> "LocalityTable":
        if (self.resident_rate is None) == (not self.resident_brackets):
            raise ValueError(f"{self.name}: set exactly one of resident_rate or resident_brackets")
        if self.resident_brackets:
            if FilingStatus.SINGLE not in self.resident_brackets:
                raise ValueError(f"{self.name}: resident brackets require SINGLE")
            _check_bracket_tables(self.resident_brackets, self.name)
        return self

    def resident_brackets_for(self, status: FilingStatus) -> Tuple[TaxBracket, ...]:
        return self.resident_brackets.get(status) or self.resident_brackets[FilingStatus.SINGLE]


class TaxTable(_TableModel):
    year: int
    version: str
    effective_date: date
    federal: FederalTable
    default_suta: SutaConfig
    states: Dict[str, StateTable]
    localities: Dict[str, LocalityTable] = {}

    @field_validator("states", "localities", mode="before")
    @classmethod
    def normalize_codes(cls, value):
        if isinstance(value, dict):
            return {str(code).upper(): entry for code, entry in value.items()}
        return value

    def state(self, code: str) -> StateTable:
        table = self.states.get(code.upper())
        if table is None:
            raise UnsupportedJurisdictionError("state", code, self.states)
        return table

    def locality(self, code: str) -> LocalityTable:
        table = self.localities.get(code.upper())
        if table is None:
            raise UnsupportedJurisdictionError("local", code, self.localities)
        return table

    def suta_for(self, code: str) -> SutaConfig:
        return self.state(code).suta or self.default_suta

    def supported_states(self) -> List[str]:
        return sorted(self.states)

    def no_income_tax_states(self) -> List[str]:
        return sorted(code for code, table in self.states.items() if table.income_tax == "none")


def parse_tax_table(data: dict, source: str = "<memory>") -> TaxTable:
    try:
        return TaxTable.model_validate(data)
    except MalformedTaxTableError:
        raise
    except ValidationError as exc:
        raise MalformedTaxTableError(f"Invalid tax table {source}: {exc}") from exc


class TaxTableRepository:
    """Versioned tax tables on disk, one ``{year}.json`` file per tax year.

    Loaded tables are frozen and cached on the repository, so a table is read
    once per tax year and reloaded only by asking for a different year.
    """

    def __init__(self, base_path: Path):
        self.base_path = Path(base_path)
        self._cache: Dict[int, TaxTable] = {}

    def available_years(self) -> List[int]:
        return sorted(int(p.stem) for p in self.base_path.glob("*.json") if p.stem.isdigit())

    def load(self, year: int) -> TaxTable:
        if year in self._cache:
            return self._cache[year]

        file_path = self.base_path / f"{year}.json"
        if not file_path.exists():
            earlier = [y for y in self.available_years() if y < year]
            if not earlier:
                raise ConfigurationError(f"No tax table for {year} or earlier in {self.base_path}")
            fallback = earlier[-1]
            logger.warning("tax_table_year_fallback", requested=year, using=fallback)
            table = self.load(fallback)
            self._cache[year] = table
            return table

        with file_path.open("r", encoding="utf-8") as handle:
            try:
                data = json.load(handle, parse_float=Decimal)
            except json.JSONDecodeError as exc:
                raise MalformedTaxTableError(f"Tax table {file_path} is not valid JSON: {exc}") from exc
        table = parse_tax_table(data, source=str(file_path))
        if table.year != year:
            raise MalformedTaxTableError(f"{file_path} declares year {table.year}, expected {year}")
        logger.info("tax_table_loaded", year=year, version=table.version, states=len(table.states))
        self._cache[year] = table
        return table

    def for_pay_date(self, pay_date: date) -> TaxTable:
        return self.load(pay_date.year)
