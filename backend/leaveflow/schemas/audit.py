# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from leaveflow.models.enums import LeaveAuditAction, LeaveRequestStatus


class AuditEntryResponse(BaseModel):
    """One entry of a request's audit trail."""

    id: uuid.UUID
    leave_request_id: uuid.UUID
    action: LeaveAuditAction
    performed_by_id: uuid.UUID
    details: str | None
    previous_status: LeaveRequestStatus | None
    new_status: LeaveRequestStatus | None
    timestamp: datetime


class AuditTrailResponse(BaseModel):
    """Audit trail of one request, newest first."""

    items: list[AuditEntryResponse]
    total: int
