# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from leaveflow.api.deps import AuthDep, YearDep
from leaveflow.db import SessionDep
from leaveflow.schemas.audit import AuditTrailResponse
from leaveflow.schemas.request import (
    CreateLeaveRequestPayload,
    DecisionPayload,
    LeaveRequestListResponse,
    LeaveRequestResponse,
    UpdateLeaveRequestPayload,
)
from leaveflow.services import audit as audit_service
from leaveflow.services import request as request_service

requests_router = APIRouter(prefix="/leave-requests", tags=["leave-requests"])


@requests_router.post("", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: CreateLeaveRequestPayload,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
) -> LeaveRequestResponse:
    """Create a pending leave request after checking the balance."""
    return await request_service.create_request(session, auth, payload, year)


@requests_router.get("/pending-approvals", response_model=LeaveRequestListResponse)
async def list_pending_approvals(session: SessionDep, auth: AuthDep) -> LeaveRequestListResponse:
    """Requests waiting for the caller's decision (managers and HR)."""
    return await request_service.list_pending_approvals(session, auth)


@requests_router.get("/{request_id}", response_model=LeaveRequestResponse)
async def get_request(request_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> LeaveRequestResponse:
    return await request_service.get_request(session, auth, request_id)


@requests_router.patch("/{request_id}", response_model=LeaveRequestResponse)
async def update_request(
    request_id: uuid.UUID,
    payload: UpdateLeaveRequestPayload,
    session: SessionDep,
    auth: AuthDep,
) -> LeaveRequestResponse:
    """Edit a pending request (owner only)."""
    return await request_service.update_request(session, auth, request_id, payload)


@requests_router.post("/{request_id}/approve", response_model=LeaveRequestResponse)
async def approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Approve at the caller's stage: manager for pending, HR for manager-approved."""
    return await request_service.approve_request(session, auth, request_id, payload, year)


@requests_router.post("/{request_id}/reject", response_model=LeaveRequestResponse)
async def reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    """Reject at the caller's stage. A comment is required."""
    return await request_service.reject_request(session, auth, request_id, payload, year)


@requests_router.post("/{request_id}/manager-approve", response_model=LeaveRequestResponse)
async def manager_approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    return await request_service.manager_approve_request(session, auth, request_id, payload, year)


@requests_router.post("/{request_id}/manager-reject", response_model=LeaveRequestResponse)
async def manager_reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    return await request_service.manager_reject_request(session, auth, request_id, payload, year)


@requests_router.post("/{request_id}/hr-approve", response_model=LeaveRequestResponse)
async def hr_approve_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    return await request_service.hr_approve_request(session, auth, request_id, payload, year)


@requests_router.post("/{request_id}/hr-reject", response_model=LeaveRequestResponse)
async def hr_reject_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
    payload: DecisionPayload | None = None,
) -> LeaveRequestResponse:
    return await request_service.hr_reject_request(session, auth, request_id, payload, year)


@requests_router.post("/{request_id}/cancel", response_model=LeaveRequestResponse)
async def cancel_request(
    request_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
) -> LeaveRequestResponse:
    """Cancel a pending or manager-approved request."""
    return await request_service.cancel_request(session, auth, request_id, year)


@requests_router.get("/{request_id}/audit", response_model=AuditTrailResponse)
async def get_audit_trail(request_id: uuid.UUID, session: SessionDep, auth: AuthDep) -> AuditTrailResponse:
    """Audit trail of a request, newest first."""
    return await audit_service.get_audit_trail(session, auth, request_id)
