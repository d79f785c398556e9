# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from leaveflow.api.deps import AuthDep
from leaveflow.db import SessionDep
from leaveflow.schemas.leave_type import (
    CreateLeaveTypePayload,
    LeaveTypeListResponse,
    LeaveTypeResponse,
    UpdateLeaveTypePayload,
)
from leaveflow.services import leave_type as leave_type_service

leave_types_router = APIRouter(prefix="/leave-types", tags=["leave-types"])


@leave_types_router.get("", response_model=LeaveTypeListResponse)
async def list_leave_types(
    session: SessionDep,
    auth: AuthDep,
    active_only: bool = Query(default=False),
) -> LeaveTypeListResponse:
    return await leave_type_service.list_leave_types(session, active_only)


@leave_types_router.post("", response_model=LeaveTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_type(
    payload: CreateLeaveTypePayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveTypeResponse:
    """Create a leave type (HR only)."""
    return await leave_type_service.create_leave_type(session, auth, payload)


@leave_types_router.get("/{leave_type_id}", response_model=LeaveTypeResponse)
async def get_leave_type(leave_type_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> LeaveTypeResponse:
    return await leave_type_service.get_leave_type(session, leave_type_id)


@leave_types_router.patch("/{leave_type_id}", response_model=LeaveTypeResponse)
async def update_leave_type(
    leave_type_id: uuid.UUID,
    payload: UpdateLeaveTypePayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveTypeResponse:
    """Update a leave type (HR only)."""
    return await leave_type_service.update_leave_type(session, auth, leave_type_id, payload)
