# employees.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from . import schemas
from .database import get_async_session
from .security import get_optional_user
from .services import EmployeeService
from .validation import parse_identifier

router = APIRouter(
    prefix="/api/v1/emp",
    tags=["Employees"],
    dependencies=[Depends(get_optional_user)],
    responses={
        400: {"model": schemas.ErrorResponse},
        404: {"model": schemas.ErrorResponse},
        409: {"model": schemas.ErrorResponse},
    },
)


def get_employee_service(
        request: Request,
        db: AsyncSession = Depends(get_async_session)
) -> EmployeeService:
    return EmployeeService(db, request.app.state.attachments)


def employee_form(
        first_name: Optional[str] = Form(None),
        last_name: Optional[str] = Form(None),
        email: Optional[str] = Form(None),
        position: Optional[str] = Form(None),
        department: Optional[str] = Form(None),
        salary: Optional[str] = Form(None),
        date_of_joining: Optional[str] = Form(None),
) -> dict:
    """Collects the multipart text fields; validation happens in the service."""
    return {
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "position": position,
        "department": department,
        "salary": salary,
        "date_of_joining": date_of_joining,
    }


@router.get("/employees", response_model=List[schemas.EmployeeView])
async def list_employees(
        department: Optional[str] = None,
        position: Optional[str] = None,
        service: EmployeeService = Depends(get_employee_service)
):
    """All employees, optionally narrowed by department/position substring."""
    return await service.list(schemas.EmployeeFilter(department=department, position=position))


@router.post("/employees", response_model=schemas.EmployeeCreated, status_code=status.HTTP_201_CREATED)
async def create_employee(
        fields: dict = Depends(employee_form),
        profile_picture: Optional[UploadFile] = File(None),
        service: EmployeeService = Depends(get_employee_service)
):
    return await service.create(fields, profile_picture)


@router.get("/employees/search", response_model=List[schemas.EmployeeView])
async def search_employees(
        department: Optional[str] = None,
        position: Optional[str] = None,
        service: EmployeeService = Depends(get_employee_service)
):
    """Like the list endpoint, but at least one filter is required."""
    return await service.search(schemas.EmployeeFilter(department=department, position=position))


@router.get("/employees/{eid}", response_model=schemas.EmployeeView)
async def get_employee(
        eid: str,
        service: EmployeeService = Depends(get_employee_service)
):
    return await service.get(parse_identifier(eid))


@router.put("/employees/{eid}", response_model=schemas.EmployeeUpdated)
async def update_employee(
        eid: str,
        fields: dict = Depends(employee_form),
        profile_picture: Optional[UploadFile] = File(None),
        service: EmployeeService = Depends(get_employee_service)
):
    """Partial update: fields left out of the form keep their stored values."""
    return await service.update(parse_identifier(eid), fields, profile_picture)


@router.delete("/employees", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
        eid: Optional[str] = Query(None),
        service: EmployeeService = Depends(get_employee_service)
):
    await service.delete(parse_identifier(eid))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
