import json
from datetime import date
from decimal import Decimal

import pytest

from payroll_engine.config import DEFAULT_TAX_TABLE_DIR
from payroll_engine.errors import ConfigurationError, MalformedTaxTableError, UnsupportedJurisdictionError
from payroll_engine.models import FilingStatus
from payroll_engine.tax_tables import TaxTableRepository, parse_tax_table


def build_repo() -> TaxTableRepository:
    return TaxTableRepository(DEFAULT_TAX_TABLE_DIR)


def packaged_table_data() -> dict:
    with (DEFAULT_TAX_TABLE_DIR / "2024.json").open("r", encoding="utf-8") as handle:
        return json.load(handle)


def write_table(directory, year: int, data: dict) -> None:
    (directory / f"{year}.json").write_text(json.dumps(data), encoding="utf-8")


def test_available_years_lists_packaged_tables():
    assert build_repo().available_years() == [2024]


def test_load_parses_packaged_table_and_caches_it():
    repo = build_repo()
    table = repo.load(2024)

    assert table.year == 2024
    assert table.effective_date == date(2024, 1, 1)
    assert table.federal.social_security.wage_cap == Decimal("168600")
    assert table.federal.standard_deduction_for(FilingStatus.HEAD_OF_HOUSEHOLD) == Decimal("21900")
    assert repo.load(2024) is table


def test_later_year_falls_back_to_latest_available_table():
    repo = build_repo()

    table = repo.for_pay_date(date(2026, 3, 15))

    assert table.year == 2024


def test_year_before_any_table_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        build_repo().load(2019)


def test_unknown_state_raises_with_supported_list():
    table = build_repo().load(2024)

    with pytest.raises(UnsupportedJurisdictionError) as excinfo:
        table.state("ZZ")

    assert excinfo.value.code == "unsupported_jurisdiction"
    assert excinfo.value.level == "state"
    assert "CA" in excinfo.value.supported


def test_unknown_locality_raises():
    with pytest.raises(UnsupportedJurisdictionError):
        build_repo().load(2024).locality("GOTHAM")


def test_state_lookup_is_case_insensitive():
    table = build_repo().load(2024)

    assert table.state("ca").name == "California"


def test_no_income_tax_states_are_explicit():
    table = build_repo().load(2024)

    assert {"TX", "FL", "WA", "NV"} <= set(table.no_income_tax_states())
    assert "CA" not in table.no_income_tax_states()


def test_suta_rate_is_clamped_and_defaults_per_state():
    table = build_repo().load(2024)
    ca = table.suta_for("CA")

    assert ca.applied_rate(None) == Decimal("0.034")
    assert ca.applied_rate(Decimal("0.5")) == Decimal("0.062")
    assert ca.applied_rate(Decimal("0.001")) == Decimal("0.015")
    assert table.suta_for("CO") == table.default_suta


def test_filing_status_mapping_and_fallback():
    table = build_repo().load(2024)
    ca = table.state("CA")
    ma = table.state("MA")

    assert ca.status_for(FilingStatus.MARRIED_FILING_SEPARATELY) == FilingStatus.SINGLE
    assert ma.brackets_for(FilingStatus.MARRIED_FILING_JOINTLY) == ma.brackets_for(FilingStatus.SINGLE)
    assert ma.annual_deductions_for(FilingStatus.MARRIED_FILING_JOINTLY) == Decimal("8800")


def test_invalid_json_is_malformed(tmp_path):
    (tmp_path / "2024.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(MalformedTaxTableError):
        TaxTableRepository(tmp_path).load(2024)


def test_declared_year_must_match_file_name(tmp_path):
    write_table(tmp_path, 2025, packaged_table_data())

    with pytest.raises(MalformedTaxTableError):
        TaxTableRepository(tmp_path).load(2025)


def test_unknown_fields_are_rejected():
    data = packaged_table_data()
    data["federal"]["surprise"] = 1

    with pytest.raises(MalformedTaxTableError):
        parse_tax_table(data)


def test_bracket_gap_is_rejected():
    data = packaged_table_data()
    data["federal"]["brackets"]["SINGLE"][1]["min_income"] = 12000

    with pytest.raises(MalformedTaxTableError):
        parse_tax_table(data)


def test_federal_table_requires_every_filing_status():
    data = packaged_table_data()
    del data["federal"]["brackets"]["HEAD_OF_HOUSEHOLD"]

    with pytest.raises(MalformedTaxTableError):
        parse_tax_table(data)


def test_flat_state_requires_rate():
    data = packaged_table_data()
    del data["states"]["PA"]["flat_rate"]

    with pytest.raises(MalformedTaxTableError):
        parse_tax_table(data)
