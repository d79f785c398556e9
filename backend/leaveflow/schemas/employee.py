# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from leaveflow.models.enums import UserRole


class UpsertEmployeeRequest(BaseModel):
    """Request body for creating or updating an employee in the directory stub."""

    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=320)
    role: UserRole = UserRole.EMPLOYEE
    manager_id: uuid.UUID | None = None


class EmployeeResponse(BaseModel):
    """Employee directory entry."""

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: UserRole
    manager_id: uuid.UUID | None


class EmployeeListResponse(BaseModel):
    items: list[EmployeeResponse]
    total: int
