# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from leaveflow.models.enums import LeaveRequestStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateLeaveRequestPayload(BaseModel):
    """Request body for creating a leave request."""

    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    half_day: bool = False
    reason: str | None = Field(default=None, max_length=2000)


class UpdateLeaveRequestPayload(BaseModel):
    """Owner edit of a pending request. Omitted fields are left unchanged."""

    leave_type_id: uuid.UUID | None = None
    start_date: date | None = None
    end_date: date | None = None
    half_day: bool | None = None
    reason: str | None = Field(default=None, max_length=2000)


class DecisionPayload(BaseModel):
    """Request body for approve/reject actions.

    The comment is optional on approval and required (non-blank) on rejection.
    """

    comment: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class LeaveRequestResponse(BaseModel):
    """Response schema for a single leave request."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    start_date: date
    end_date: date
    half_day: bool
    reason: str | None
    status: LeaveRequestStatus
    batch_id: uuid.UUID | None
    manager_id: uuid.UUID | None
    manager_comment: str | None
    manager_action_at: datetime | None
    hr_id: uuid.UUID | None
    hr_comment: str | None
    hr_action_at: datetime | None
    created_at: datetime
    updated_at: datetime


class LeaveRequestListResponse(BaseModel):
    """List of leave requests."""

    items: list[LeaveRequestResponse]
    total: int
