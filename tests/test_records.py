"""Tests for the HIV record parser."""

from __future__ import annotations

import numpy as np
import pytest

from hivburden.config import ParsingParameters
from hivburden.records import (
    OBSERVATION_COLUMNS,
    normalize_text,
    parse_magnitude,
    parse_records,
    parse_year,
    read_hiv_file,
    split_record,
)

FIELDS = ("country", "region", "year", "value")


# ---------------------------------------------------------------------------
# Field splitting


def test_split_record_exact() -> None:
    record = split_record("Kenya,Africa,2015,1400 thousand", FIELDS)
    assert record == {"country": "Kenya", "region": "Africa", "year": "2015", "value": "1400 thousand"}


def test_split_record_drops_extra_tokens() -> None:
    record = split_record("Kenya,Africa,2015,1400 thousand,[1300 - 1500],note", FIELDS)
    assert record["value"] == "1400 thousand"
    assert len(record) == 4


def test_split_record_fills_missing_trailing_fields() -> None:
    record = split_record("Kenya,Africa", FIELDS)
    assert record == {"country": "Kenya", "region": "Africa", "year": "", "value": ""}


def test_normalize_text_strips_encoding_artefacts() -> None:
    assert normalize_text("\ufeff\"Cote d'Ivoire \"") == "Cote d'Ivoire"
    assert normalize_text("12 thousand") == "12 thousand"
    assert normalize_text("12\u00a0thousand") == "12 thousand"
    assert normalize_text(None) == ""
    assert normalize_text(float("nan")) == ""


# ---------------------------------------------------------------------------
# Value parsing


def test_parse_magnitude_scales_thousands() -> None:
    assert parse_magnitude("123 thousand") == pytest.approx(123000.0)
    assert parse_magnitude("1.5 thousand [1.2 - 1.9]") == pytest.approx(1500.0)


@pytest.mark.parametrize("text", ["No data", "no data available", "<100", "< 0.1 thousand", "", "   "])
def test_parse_magnitude_missing_markers(text: str) -> None:
    assert np.isnan(parse_magnitude(text))


def test_parse_magnitude_unparseable_token() -> None:
    assert np.isnan(parse_magnitude("about 12 thousand"))


def test_parse_magnitude_custom_scale() -> None:
    assert parse_magnitude("7 people", scale=1.0) == pytest.approx(7.0)


def test_parse_magnitude_strips_thousands_separators() -> None:
    assert parse_magnitude("1,400 thousand") == pytest.approx(1400000.0)
    assert parse_magnitude("2,300,000 people", scale=1.0) == pytest.approx(2300000.0)


def test_parse_year() -> None:
    assert parse_year("2015") == 2015
    assert parse_year(" 2015 (est.)") == 2015
    assert parse_year("n/a") is None


# ---------------------------------------------------------------------------
# Record parsing


def test_parse_records_keeps_valid_rows() -> None:
    df = parse_records(["A,B,2010,123 thousand"])
    assert list(df.columns) == OBSERVATION_COLUMNS
    assert df.iloc[0].to_dict() == {"country": "A", "region": "B", "year": 2010, "value": 123000.0}


def test_parse_records_discards_missing_values() -> None:
    df = parse_records([
        "A,B,2010,No data",
        "C,B,2010,<100",
        "D,B,2010,5 thousand",
    ])
    assert df["country"].tolist() == ["D"]


def test_parse_records_discards_malformed_rows_without_raising() -> None:
    df = parse_records(["A,B", "", "E,B,year,5 thousand", ",B,2010,5 thousand"])
    assert df.empty
    assert list(df.columns) == OBSERVATION_COLUMNS


def test_parse_records_empty_region_is_missing() -> None:
    df = parse_records(["A,,2010,5 thousand", "B,Africa,2010,6 thousand"])
    assert df["country"].tolist() == ["A", "B"]
    assert df["region"].isna().tolist() == [True, False]


def test_parse_records_skips_header() -> None:
    df = parse_records(["Country,Region,Year,Value", "A,B,2010,1 thousand"])
    assert df["country"].tolist() == ["A"]


def test_parse_records_applies_year_range() -> None:
    params = ParsingParameters(year_min=2005, year_max=2010)
    df = parse_records(["A,B,2004,1 thousand", "A,B,2005,2 thousand", "A,B,2011,3 thousand"], params)
    assert df["year"].tolist() == [2005]


def test_parse_records_custom_field_order() -> None:
    params = ParsingParameters(record_fields=("year", "country", "value", "region"))
    df = parse_records(["2012,A,4 thousand,B"], params)
    assert df.iloc[0]["country"] == "A"
    assert df.iloc[0]["region"] == "B"
    assert df.iloc[0]["value"] == pytest.approx(4000.0)


def test_read_hiv_file(tmp_path) -> None:
    path = tmp_path / "hiv.csv"
    path.write_text(
        '\ufeff"Country,Region,Year,Value"\n'
        '"Kenya,Africa,2015,1400 thousand [1300 - 1500]"\n'
        '"Kenya,Africa,2016,No data"\n'
        '\n'
        '"Peru,Americas,2016,87 thousand"\n',
        encoding="utf-8",
    )
    df = read_hiv_file(path)
    assert df["country"].tolist() == ["Kenya", "Peru"]
    assert df["value"].tolist() == [1400000.0, 87000.0]


def test_read_hiv_file_missing(tmp_path) -> None:
    with pytest.raises(AssertionError):
        read_hiv_file(tmp_path / "missing.csv")
