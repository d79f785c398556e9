# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from leaveflow.models.enums import UserRole


class EmployeeInfo(BaseModel):
    """Employee record from the identity directory."""

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: UserRole = UserRole.EMPLOYEE
    manager_id: uuid.UUID | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@runtime_checkable
class EmployeeService(Protocol):
    """Interface for the employee directory."""

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        """Fetch an employee. Returns None if not found."""
        ...

    async def get_employee_by_email(self, email: str) -> EmployeeInfo | None:
        """Fetch an employee by email (case-insensitive). Returns None if not found."""
        ...

    async def list_employees(self) -> list[EmployeeInfo]:
        """List all employees."""
        ...


class InMemoryEmployeeService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._employees: dict[uuid.UUID, EmployeeInfo] = {}

    def seed(self, employee: EmployeeInfo) -> None:
        """Seed an employee for testing."""
        self._employees[employee.id] = employee

    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        return self._employees.get(employee_id)

    async def get_employee_by_email(self, email: str) -> EmployeeInfo | None:
        wanted = email.strip().lower()
        for employee in self._employees.values():
            if employee.email.lower() == wanted:
                return employee
        return None

    async def list_employees(self) -> list[EmployeeInfo]:
        return sorted(self._employees.values(), key=lambda e: (e.last_name, e.first_name))


_employee_service: EmployeeService = InMemoryEmployeeService()


def get_employee_service() -> EmployeeService:
    """FastAPI dependency for the employee directory."""
    return _employee_service


def set_employee_service(service: EmployeeService) -> None:
    """Override the service (for testing or production wiring)."""
    global _employee_service
    _employee_service = service
