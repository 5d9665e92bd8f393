from datetime import date, timedelta

import pytest

from meditrack.exceptions import PatientValidationError
from meditrack.utils.validators import calculate_age, check_patient, is_valid_phone, validate_patient


def test_valid_patient_to_record(patient_data):
    record = check_patient(patient_data()).to_record()
    assert record["first_name"] == "Jane"
    assert record["date_of_birth"] == "1985-04-12"
    assert record["gender"] == "female"
    assert record["email"] == "jane.doe@clinic.org"


def test_missing_required_fields_are_all_named():
    with pytest.raises(PatientValidationError) as exc_info:
        check_patient({"last_name": "Doe"})
    assert sorted(exc_info.value.fields) == ["date_of_birth", "first_name", "gender"]
    assert "First name is required" in exc_info.value.errors
    assert "Gender is required" in exc_info.value.errors


def test_blank_required_fields_count_as_missing(patient_data):
    errors = validate_patient(patient_data(first_name="  ", date_of_birth="", gender=""))
    assert "First name is required" in errors
    assert "Date of birth is required" in errors
    assert "Gender is required" in errors


def test_future_date_of_birth_rejected(patient_data):
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    with pytest.raises(PatientValidationError) as exc_info:
        check_patient(patient_data(date_of_birth=tomorrow))
    assert exc_info.value.fields == ["date_of_birth"]


def test_today_is_an_acceptable_date_of_birth(patient_data):
    assert validate_patient(patient_data(date_of_birth=date.today().isoformat())) == []


def test_invalid_email_and_phone_reported_together(patient_data):
    errors = validate_patient(patient_data(email="not-an-email", phone="12-34"))
    assert errors == ["Email is invalid", "Phone number is invalid"]


def test_blank_optional_fields_are_dropped(patient_data):
    record = check_patient(patient_data(email="", phone=" ", address="")).to_record()
    assert "email" not in record
    assert "phone" not in record
    assert "address" not in record


def test_gender_is_case_insensitive_and_restricted(patient_data):
    assert check_patient(patient_data(gender="Male")).to_record()["gender"] == "male"
    errors = validate_patient(patient_data(gender="robot"))
    assert errors == ["Gender must be one of: male, female, other, prefer_not_to_say"]


@pytest.mark.parametrize("phone,expected", [
    ("5551234567", True),
    ("+44 20 7946 0958", True),
    ("(555) 123-4567", True),
    ("555-1234", False),
    ("phone", False),
])
def test_is_valid_phone(phone, expected):
    assert is_valid_phone(phone) is expected


def test_calculate_age():
    today = date(2024, 6, 15)
    assert calculate_age("2000-06-15", today) == 24
    assert calculate_age("2000-06-16", today) == 23
    assert calculate_age(date(1990, 1, 1), today) == 34
    assert calculate_age("garbage", today) is None
    assert calculate_age(None, today) is None


@pytest.mark.parametrize("email", ["a@clinic.test", "x@host.local", "first.last+tag@example.co.uk"])
def test_email_accepts_any_user_at_domain_dot_tld(patient_data, email):
    assert check_patient(patient_data(email=email)).to_record()["email"] == email


@pytest.mark.parametrize("email", ["no-at-sign.org", "two@@signs.org", "a@nodot", "sp ace@clinic.org"])
def test_email_rejects_malformed_addresses(patient_data, email):
    assert validate_patient(patient_data(email=email)) == ["Email is invalid"]
