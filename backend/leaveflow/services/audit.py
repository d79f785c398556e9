from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leaveflow.exceptions import ForbiddenError, NotFoundError
from leaveflow.models.audit import LeaveAudit
from leaveflow.models.enums import LeaveAuditAction, LeaveRequestStatus, UserRole
from leaveflow.models.request import LeaveRequest
from leaveflow.schemas.audit import AuditEntryResponse, AuditTrailResponse

if TYPE_CHECKING:
    import uuid
    from datetime import datetime

    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.schemas.auth import AuthContext


def _build_audit_response(entry: LeaveAudit) -> AuditEntryResponse:
    return AuditEntryResponse(
        id=entry.id,
        leave_request_id=entry.leave_request_id,
        action=LeaveAuditAction(entry.action),
        performed_by_id=entry.performed_by_id,
        details=entry.details,
        previous_status=LeaveRequestStatus(entry.previous_status) if entry.previous_status else None,
        new_status=LeaveRequestStatus(entry.new_status) if entry.new_status else None,
        timestamp=entry.timestamp,
    )


async def write_leave_audit(
    session: AsyncSession,
    *,
    leave_request_id: uuid.UUID,
    action: LeaveAuditAction,
    performed_by_id: uuid.UUID,
    details: str | None = None,
    previous_status: LeaveRequestStatus | str | None = None,
    new_status: LeaveRequestStatus | str | None = None,
    timestamp: datetime | None = None,
) -> LeaveAudit:
    """Append an immutable audit entry within the caller's transaction."""
    entry = LeaveAudit(
        leave_request_id=leave_request_id,
        action=action.value,
        performed_by_id=performed_by_id,
        details=details,
        previous_status=str(previous_status) if previous_status is not None else None,
        new_status=str(new_status) if new_status is not None else None,
    )
    if timestamp is not None:
        entry.timestamp = timestamp
    session.add(entry)
    return entry


async def get_audit_trail(
    session: AsyncSession,
    auth: AuthContext,
    leave_request_id: uuid.UUID,
) -> AuditTrailResponse:
    """Return a request's audit trail, newest first.

    Employees may only read the trail of their own requests.
    """
    result = await session.execute(select(LeaveRequest).where(col(LeaveRequest.id) == leave_request_id))
    leave_request = result.scalar_one_or_none()
    if leave_request is None:
        raise NotFoundError("Leave request not found")

    if auth.role not in (UserRole.MANAGER, UserRole.HR) and leave_request.employee_id != auth.user_id:
        raise ForbiddenError("Not authorized to view this leave request audit trail")

    entries_result = await session.execute(
        select(LeaveAudit)
        .where(col(LeaveAudit.leave_request_id) == leave_request_id)
        .order_by(col(LeaveAudit.timestamp).desc(), col(LeaveAudit.id).desc())
    )
    entries = list(entries_result.scalars().all())
    return AuditTrailResponse(items=[_build_audit_response(e) for e in entries], total=len(entries))
