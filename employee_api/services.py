# services.py
import logging
import uuid
from typing import List, Mapping, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from . import crud
from .attachments import AttachmentManager, AttachmentRef, to_ref
from .config import Settings
from .exceptions import (
    ConflictError,
    FieldError,
    NotFoundError,
    UnauthorizedError,
    UploadRejected,
    ValidationFailed,
)
from .models import Employee, User
from .schemas import (
    EmployeeCreated,
    EmployeeFilter,
    EmployeeUpdated,
    EmployeeView,
    UserCreate,
    UserLogin,
)
from .security import create_access_token, hash_password_async, verify_password_async
from .validation import validate_employee_create, validate_employee_update

logger = logging.getLogger(__name__)

EMPLOYEE_NOT_FOUND = "Employee not found"
EMAIL_TAKEN = "Employee with this email already exists"
INVALID_CREDENTIALS = "Invalid username or password"


class EmployeeService:
    """
    Employee CRUD plus the profile-picture lifecycle.

    A newly stored picture is removed whenever the request fails before the
    record referencing it is committed. A replaced picture is removed only
    after the record pointing at its successor has been committed.
    """

    def __init__(self, db: AsyncSession, attachments: AttachmentManager):
        self.db = db
        self.attachments = attachments

    def to_view(self, employee: Employee) -> EmployeeView:
        return EmployeeView(
            employee_id=employee.id,
            first_name=employee.first_name,
            last_name=employee.last_name,
            email=employee.email,
            position=employee.position,
            salary=employee.salary,
            date_of_joining=employee.date_of_joining,
            department=employee.department,
            profile_picture=self.attachments.public_path(to_ref(employee.attachment_ref)),
        )

    async def _receive(self, upload: Optional[UploadFile]) -> Tuple[Optional[AttachmentRef], List[FieldError]]:
        # Browsers send an empty part without a filename when no file is picked
        if upload is None or not upload.filename:
            return None, []
        try:
            return await self.attachments.store_upload(upload), []
        except UploadRejected as exc:
            return None, [{"field": "profile_picture", "message": exc.reason}]

    async def _discard_quietly(self, ref: Optional[AttachmentRef]):
        try:
            await self.attachments.discard(ref)
        except (OSError, ValueError):
            # The record no longer points at it; a leftover or unreadable handle is only garbage
            logger.exception(f"Could not delete attachment {ref.handle}")

    async def create(self, raw: Mapping[str, Optional[str]], upload: Optional[UploadFile] = None) -> EmployeeCreated:
        new_ref, upload_errors = await self._receive(upload)
        try:
            data, errors = validate_employee_create(raw)
            errors = errors + upload_errors
            if errors:
                raise ValidationFailed(errors)

            if await crud.get_employee_by_email(self.db, data.email):
                raise ConflictError(EMAIL_TAKEN)

            employee = Employee(
                **data.model_dump(),
                attachment_ref=new_ref.handle if new_ref else None,
            )
            employee = await crud.create_employee(self.db, employee)
        except BaseException:
            # Synchronous so cleanup still runs when the request is being cancelled
            self.attachments.delete(new_ref)
            raise

        logger.info(f"Created employee {employee.id}")
        return EmployeeCreated(
            message="Employee created successfully.",
            employee_id=employee.id,
            profile_picture=self.attachments.public_path(new_ref),
        )

    async def get(self, employee_id: uuid.UUID) -> EmployeeView:
        employee = await crud.get_employee(self.db, employee_id)
        if employee is None:
            raise NotFoundError(EMPLOYEE_NOT_FOUND)
        return self.to_view(employee)

    async def list(self, filters: Optional[EmployeeFilter] = None) -> List[EmployeeView]:
        filters = filters or EmployeeFilter()
        employees = await crud.get_all_employees(
            self.db,
            department=filters.department,
            position=filters.position,
        )
        return [self.to_view(employee) for employee in employees]

    async def search(self, filters: EmployeeFilter) -> List[EmployeeView]:
        if filters.is_empty():
            message = "Provide department or position to search"
            raise ValidationFailed(
                [
                    {"field": "department", "message": message},
                    {"field": "position", "message": message},
                ],
                message=message,
            )
        return await self.list(filters)

    async def update(
            self,
            employee_id: uuid.UUID,
            raw: Mapping[str, Optional[str]],
            upload: Optional[UploadFile] = None
    ) -> EmployeeUpdated:
        new_ref, upload_errors = await self._receive(upload)
        try:
            changes, errors = validate_employee_update(raw)
            errors = errors + upload_errors
            if errors:
                raise ValidationFailed(errors)

            employee = await crud.get_employee(self.db, employee_id)
            if employee is None:
                raise NotFoundError(EMPLOYEE_NOT_FOUND)

            # Omitted fields keep the stored values
            update_data = changes.model_dump(exclude_unset=True)
            new_email = update_data.get("email")
            if new_email and new_email != employee.email:
                other = await crud.get_employee_by_email(self.db, new_email)
                if other is not None and other.id != employee.id:
                    raise ConflictError(EMAIL_TAKEN)

            old_ref = to_ref(employee.attachment_ref)
            for key, value in update_data.items():
                setattr(employee, key, value)
            if new_ref is not None:
                employee.attachment_ref = new_ref.handle

            employee = await crud.save_employee(self.db, employee)
        except BaseException:
            # Synchronous so cleanup still runs when the request is being cancelled
            self.attachments.delete(new_ref)
            raise

        if new_ref is not None and old_ref is not None:
            await self._discard_quietly(old_ref)

        logger.info(f"Updated employee {employee.id}")
        return EmployeeUpdated(
            message="Employee details updated successfully.",
            profile_picture=self.attachments.public_path(to_ref(employee.attachment_ref)),
        )

    async def delete(self, employee_id: uuid.UUID) -> None:
        employee = await crud.get_employee(self.db, employee_id)
        if employee is None:
            raise NotFoundError(EMPLOYEE_NOT_FOUND)

        ref = to_ref(employee.attachment_ref)
        await crud.delete_employee(self.db, employee)
        await self._discard_quietly(ref)
        logger.info(f"Deleted employee {employee_id}")


class AuthService:
    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def signup(self, user: UserCreate) -> User:
        # Same message whichever field collided
        if await crud.user_exists(self.db, user.username, user.email):
            raise ConflictError("User already exists")

        hashed_password = await hash_password_async(user.password)
        db_user = await crud.create_user(self.db, user.username, user.email, hashed_password)
        logger.info(f"User {db_user.id} signed up")
        return db_user

    async def login(self, credentials: UserLogin) -> str:
        if credentials.email:
            user = await crud.get_user_by_email(self.db, credentials.email)
        else:
            user = await crud.get_user_by_username(self.db, credentials.username)

        hashed = user.hashed_password if user else None
        if not await verify_password_async(credentials.password, hashed):
            logger.warning(f"Failed login for {credentials.email or credentials.username!r}")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        return create_access_token(str(user.id), self.settings)
