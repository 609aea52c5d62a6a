# validation.py
"""
Request validation helpers.

Every validator reports all violations at once as ``{field, message}``
pairs so a client can show every error after a single round trip.
"""
import uuid
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from .exceptions import FieldError, ValidationFailed
from .schemas import EmployeeCreate, EmployeeUpdate

_LOCATION_PREFIXES = {"body", "query", "path", "form", "header"}


def errors_from_pydantic(errors: Iterable[Mapping[str, Any]]) -> List[FieldError]:
    """Flattens pydantic error dicts into ``{field, message}`` pairs."""
    result = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in _LOCATION_PREFIXES]
        field = loc[-1] if loc else "body"
        message = str(err.get("msg", "Invalid value")).removeprefix("Value error, ")
        result.append({"field": field, "message": message})
    return result


def _clean(raw: Mapping[str, Any]) -> dict:
    return {key: value for key, value in raw.items() if value is not None}


def validate_employee_create(raw: Mapping[str, Any]) -> Tuple[Optional[EmployeeCreate], List[FieldError]]:
    try:
        return EmployeeCreate.model_validate(_clean(raw)), []
    except ValidationError as exc:
        return None, errors_from_pydantic(exc.errors())


def validate_employee_update(raw: Mapping[str, Any]) -> Tuple[Optional[EmployeeUpdate], List[FieldError]]:
    """Validates only the fields present in ``raw``; absent fields stay unset."""
    try:
        return EmployeeUpdate.model_validate(_clean(raw)), []
    except ValidationError as exc:
        return None, errors_from_pydantic(exc.errors())


def parse_identifier(value: Optional[str], field: str = "eid") -> uuid.UUID:
    """Parses a record id, rejecting malformed ones before the store is touched."""
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationFailed(
            [{"field": field, "message": "Invalid employee id"}],
            message="Invalid employee id",
        )
