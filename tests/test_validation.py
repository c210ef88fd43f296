from datetime import date

import pytest

from core.validation import (
    compute_age,
    extract_patient_id,
    extract_primary_id,
    has_records,
    is_valid_date_format,
    is_valid_email,
    is_valid_identification,
    is_valid_phone,
)


@pytest.mark.parametrize("value", ["1990-03-15", "2000-02-29", "1985-12-31"])
def test_valid_dates(value):
    assert is_valid_date_format(value)


@pytest.mark.parametrize("value", ["15-03-1990", "1990/03/15", "1990-3-15", "", "1990-02-30", "2023-13-01"])
def test_invalid_dates(value):
    assert not is_valid_date_format(value)


def test_age_counts_only_completed_years():
    assert compute_age("1990-03-15", date(2024, 3, 14)) == 33
    assert compute_age("1990-03-15", date(2024, 3, 15)) == 34
    assert compute_age("1990-03-15", date(2024, 3, 16)) == 34


def test_age_accepts_date_objects():
    assert compute_age(date(2006, 1, 1), date(2024, 1, 1)) == 18


def test_identification_rules():
    assert is_valid_identification("12345678")
    assert is_valid_identification("AB12cd")
    assert not is_valid_identification("12345")
    assert not is_valid_identification("1234-5678")
    assert not is_valid_identification("1234 5678")
    assert not is_valid_identification("")
    assert not is_valid_identification(None)


def test_email_and_phone():
    assert is_valid_email("maria@example.com")
    assert not is_valid_email("maria@example")
    assert not is_valid_email("maria example.com")

    assert is_valid_phone("+58 (212) 555-1234")
    assert not is_valid_phone("12345")
    assert not is_valid_phone("555-abc-1234")


def test_extract_primary_id_priority():
    assert extract_primary_id({"data": {"id": 890, "product_id": 1}, "id": 2}) == 890
    assert extract_primary_id({"data": {"product_id": "77"}}) == 77
    assert extract_primary_id({"id": 5}) == 5
    assert extract_primary_id({"product_id": 6}) == 6
    assert extract_primary_id({"data": None, "meta": {}}) is None
    assert extract_primary_id("ok") is None


def test_extract_patient_id_from_ids_list():
    assert extract_patient_id({"data": {"id": 123}}) == "123"
    assert extract_patient_id({"data": {"ids": [45]}}) == "45"
    assert extract_patient_id({"id": "9"}) == "9"
    assert extract_patient_id({"data": {}}) is None


def test_has_records_ignores_null_placeholders():
    assert not has_records(None)
    assert not has_records([])
    assert not has_records([None])
    assert not has_records({})
    assert has_records([{"id": 1}])
    assert has_records({"id": 1})
