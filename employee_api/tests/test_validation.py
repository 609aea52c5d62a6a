# tests/test_validation.py
import uuid
from datetime import date

import pytest

from employee_api.exceptions import ValidationFailed
from employee_api.schemas import EmployeeFilter
from employee_api.validation import (
    errors_from_pydantic,
    parse_identifier,
    validate_employee_create,
    validate_employee_update,
)

from conftest import employee_fields


def test_create_normalizes_values():
    data, errors = validate_employee_create(employee_fields(first_name="  Ada  ", salary="0"))
    assert errors == []
    assert data.first_name == "Ada"
    assert data.salary == 0.0
    assert data.date_of_joining == date(2021, 3, 15)


def test_create_accepts_iso_datetime():
    data, errors = validate_employee_create(employee_fields(date_of_joining="2021-03-15T09:30:00Z"))
    assert errors == []
    assert data.date_of_joining == date(2021, 3, 15)


def test_create_collects_every_violation():
    data, errors = validate_employee_create(
        employee_fields(salary="-1", email="nope", date_of_joining="soon", department="")
    )
    assert data is None
    assert {e["field"] for e in errors} == {"salary", "email", "date_of_joining", "department"}
    assert all(e["message"] for e in errors)


@pytest.mark.parametrize("salary", ["nan", "inf", "-0.01"])
def test_create_rejects_bad_salary(salary):
    _, errors = validate_employee_create(employee_fields(salary=salary))
    assert [e["field"] for e in errors] == ["salary"]


def test_update_only_checks_present_fields():
    data, errors = validate_employee_update({"salary": "10", "first_name": None})
    assert errors == []
    assert data.model_dump(exclude_unset=True) == {"salary": 10.0}


def test_update_applies_field_rules():
    _, errors = validate_employee_update({"last_name": " ", "salary": "abc"})
    assert {e["field"] for e in errors} == {"last_name", "salary"}


def test_parse_identifier():
    eid = uuid.uuid4()
    assert parse_identifier(str(eid)) == eid


@pytest.mark.parametrize("value", [None, "", "123", "zzzzzzzz-zzzz-zzzz-zzzz-zzzzzzzzzzzz"])
def test_parse_identifier_rejects_malformed(value):
    with pytest.raises(ValidationFailed) as exc_info:
        parse_identifier(value)
    assert exc_info.value.status_code == 400
    assert exc_info.value.errors[0]["field"] == "eid"


def test_errors_from_pydantic_strips_location_and_prefix():
    errors = errors_from_pydantic([
        {"loc": ("body", "email"), "msg": "value is not a valid email address"},
        {"loc": ("body",), "msg": "Value error, Provide email or username"},
    ])
    assert errors == [
        {"field": "email", "message": "value is not a valid email address"},
        {"field": "body", "message": "Provide email or username"},
    ]


def test_filter_blank_values_are_absent():
    assert EmployeeFilter(department=" ", position="").is_empty()
    assert not EmployeeFilter(position=" dev ").is_empty()
    assert EmployeeFilter(position=" dev ").position == "dev"
