# schemas.py
import math
import uuid
from datetime import date, datetime
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field


def check_email_syntax(v):
    """Rejects malformed addresses; the value is kept as the client typed it."""
    if v is None:
        return v
    try:
        validate_email(v, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"value is not a valid email address: {exc}")
    return v


def parse_iso_date(v):
    """Accepts an ISO-8601 date or datetime string and returns the calendar date."""
    if v is None or isinstance(v, date):
        return v
    if not isinstance(v, str):
        raise ValueError("Invalid date format")
    text = v.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValueError(f"Invalid date format: {v}")


# --- Employee schemas ---

class EmployeeRules(SQLModel):
    """Field rules shared by create and update; absent (None) values are skipped."""

    @field_validator(
        "first_name", "last_name", "position", "department",
        mode="before", check_fields=False,
    )
    @classmethod
    def not_blank(cls, v):
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip()
        if v == "":
            raise ValueError("must not be empty")
        return v

    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", check_fields=False)
    @classmethod
    def valid_email(cls, v):
        return check_email_syntax(v)

    @field_validator("salary", check_fields=False)
    @classmethod
    def finite_salary(cls, v):
        if v is not None and not math.isfinite(v):
            raise ValueError("Salary must be a finite number")
        return v

    @field_validator("date_of_joining", mode="before", check_fields=False)
    @classmethod
    def iso_date(cls, v):
        return parse_iso_date(v)


class EmployeeCreate(EmployeeRules):
    first_name: str
    last_name: str
    email: str
    position: str
    department: str
    salary: float = Field(ge=0)
    date_of_joining: date

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "first_name": "Jane",
                "last_name": "Doe",
                "email": "jane.doe@example.com",
                "position": "Engineer",
                "department": "Engineering",
                "salary": 85000,
                "date_of_joining": "2023-08-01"
            }
        }
    )


class EmployeeUpdate(EmployeeRules):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    salary: Optional[float] = Field(default=None, ge=0)
    date_of_joining: Optional[date] = None


class EmployeeView(SQLModel):
    employee_id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    position: str
    salary: float
    date_of_joining: date
    department: str
    profile_picture: Optional[str] = None


class EmployeeCreated(SQLModel):
    message: str
    employee_id: uuid.UUID
    profile_picture: Optional[str] = None


class EmployeeUpdated(SQLModel):
    message: str
    profile_picture: Optional[str] = None


class EmployeeFilter(SQLModel):
    department: Optional[str] = None
    position: Optional[str] = None

    @field_validator("department", "position", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    def is_empty(self) -> bool:
        return not self.department and not self.position


# --- Schemas for Auth ---

class UserCreate(SQLModel):
    username: str
    email: str
    password: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        return check_email_syntax(v.strip())

    @field_validator("username", mode="before")
    @classmethod
    def username_not_blank(cls, v):
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v):
        if len(v.encode()) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return v


class UserLogin(SQLModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: str = Field(min_length=1)

    # Looked up exactly as signup stored it
    @field_validator("email", "username", mode="before")
    @classmethod
    def strip_identifier(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def require_identifier(self):
        if not self.email and not self.username:
            raise ValueError("Provide email or username")
        return self


class SignupResponse(SQLModel):
    message: str
    user_id: uuid.UUID


class LoginResponse(SQLModel):
    message: str
    jwt_token: str


class FieldErrorRead(SQLModel):
    field: str
    message: str


class ErrorResponse(SQLModel):
    status: bool = False
    message: str
    errors: Optional[list[FieldErrorRead]] = None
