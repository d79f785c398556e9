# ruff: noqa: TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter

from leaveflow.api.deps import AuthDep
from leaveflow.exceptions import ForbiddenError, NotFoundError
from leaveflow.models.enums import UserRole
from leaveflow.schemas.employee import EmployeeListResponse, EmployeeResponse, UpsertEmployeeRequest
from leaveflow.services.employee import EmployeeInfo, InMemoryEmployeeService, get_employee_service

employees_router = APIRouter(prefix="/employees", tags=["employees"])


def _to_response(employee: EmployeeInfo) -> EmployeeResponse:
    return EmployeeResponse.model_validate(employee.model_dump())


@employees_router.put("/{employee_id}", response_model=EmployeeResponse)
async def upsert_employee(
    employee_id: uuid.UUID,
    payload: UpsertEmployeeRequest,
    auth: AuthDep,
) -> EmployeeResponse:
    """Create or update an employee in the in-memory directory (HR or service only)."""
    if auth.role not in (UserRole.HR, UserRole.SERVICE):
        raise ForbiddenError("Not authorized to manage employees")
    svc = get_employee_service()
    if not isinstance(svc, InMemoryEmployeeService):
        raise ForbiddenError("The configured employee directory is read-only")
    employee = EmployeeInfo(id=employee_id, **payload.model_dump())
    svc.seed(employee)
    return _to_response(employee)


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(employee_id: uuid.UUID, auth: AuthDep) -> EmployeeResponse:
    employee = await get_employee_service().get_employee(employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return _to_response(employee)


@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees(auth: AuthDep) -> EmployeeListResponse:
    """List the employee directory."""
    employees = await get_employee_service().list_employees()
    return EmployeeListResponse(items=[_to_response(e) for e in employees], total=len(employees))
