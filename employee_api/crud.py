# crud.py
import uuid
from typing import List, Optional

from sqlmodel import select
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from .exceptions import ConflictError
from .models import Employee, User, utcnow


def _contains_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def _commit(db: AsyncSession, instance, conflict_message: str):
    try:
        db.add(instance)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(conflict_message)
    await db.refresh(instance)
    return instance


# --- Employee CRUD ---

async def get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Optional[Employee]:
    return await db.get(Employee, employee_id)


async def get_employee_by_email(db: AsyncSession, email: str) -> Optional[Employee]:
    statement = select(Employee).where(Employee.email == email)
    result = await db.execute(statement)
    return result.scalars().first()


async def get_all_employees(
        db: AsyncSession,
        department: Optional[str] = None,
        position: Optional[str] = None,
) -> List[Employee]:
    """Case-insensitive substring match on each filter that is given."""
    statement = select(Employee)

    if department:
        statement = statement.where(Employee.department.ilike(_contains_pattern(department), escape="\\"))
    if position:
        statement = statement.where(Employee.position.ilike(_contains_pattern(position), escape="\\"))

    result = await db.execute(statement)
    return list(result.scalars().all())


async def create_employee(db: AsyncSession, employee: Employee) -> Employee:
    return await _commit(db, employee, "Employee with this email already exists")


async def save_employee(db: AsyncSession, employee: Employee) -> Employee:
    employee.updated_at = utcnow()
    return await _commit(db, employee, "Employee with this email already exists")


async def delete_employee(db: AsyncSession, employee: Employee) -> None:
    await db.delete(employee)
    await db.commit()


# --- User CRUD ---

async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    statement = select(User).where(User.username == username)
    result = await db.execute(statement)
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    statement = select(User).where(User.email == email)
    result = await db.execute(statement)
    return result.scalars().first()


async def user_exists(db: AsyncSession, username: str, email: str) -> bool:
    statement = select(User.id).where(or_(User.username == username, User.email == email))
    result = await db.execute(statement)
    return result.first() is not None


async def create_user(db: AsyncSession, username: str, email: str, hashed_password: str) -> User:
    db_user = User(
        username=username,
        email=email,
        hashed_password=hashed_password,
    )
    return await _commit(db, db_user, "User already exists")
