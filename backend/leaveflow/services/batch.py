"""Creation of several single-day leave requests as one unit.

A batch is all-or-nothing: the requests, their audit entries and the single
aggregate BATCH_DEBIT are written in one transaction. Unlike single requests,
the ledger is debited when the batch is created; each row carries the
``batch_id`` so that HR approval later does not debit it a second time.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leaveflow.config import get_settings
from leaveflow.db import transaction
from leaveflow.exceptions import BadInputError, ForbiddenError, NotFoundError
from leaveflow.models.enums import LeaveAuditAction, LeaveRequestStatus, LedgerSourceType, UserRole
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.request import LeaveRequest
from leaveflow.schemas.batch import LeaveBatchResponse
from leaveflow.services import balance as ledger
from leaveflow.services.audit import write_leave_audit
from leaveflow.services.duration import calculate_consumed_days
from leaveflow.services.employee import get_employee_service
from leaveflow.services.notification import NotificationEvent, notify
from leaveflow.services.request import build_request_response

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.batch import CreateLeaveBatchPayload
    from leaveflow.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)


async def _resolve_employee(auth: AuthContext, email: str | None) -> EmployeeInfo:
    directory = get_employee_service()
    if auth.role == UserRole.SERVICE:
        if not email:
            raise BadInputError("employee_email is required for service callers")
        employee = await directory.get_employee_by_email(email)
        if employee is None:
            raise NotFoundError(f"Employee not found: {email}")
        return employee

    employee = await directory.get_employee(auth.user_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    if email and email.lower() != employee.email.lower():
        raise ForbiddenError("You can only create leave requests for yourself")
    return employee


async def _resolve_leave_type(session: AsyncSession, name: str | None) -> LeaveType:
    """Find an active leave type whose name contains ``name`` (or the default)."""
    needle = (name or get_settings().default_batch_leave_type).lower()
    result = await session.execute(
        select(LeaveType)
        .where(
            col(LeaveType.active).is_(True),
            func.lower(col(LeaveType.name)).contains(needle, autoescape=True),
        )
        .order_by(col(LeaveType.name))
        .limit(1)
    )
    leave_type = result.scalar_one_or_none()
    if leave_type is None:
        raise NotFoundError(f"No active leave type matching '{needle}'")
    return leave_type


async def create_leave_batch(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeaveBatchPayload,
    year: int,
) -> LeaveBatchResponse:
    """Create one pending request per date and pre-debit the ledger by the total."""
    if not payload.leaves:
        raise BadInputError("At least one leave date is required")
    dates = [item.leave_on for item in payload.leaves]
    if len(set(dates)) != len(dates):
        raise BadInputError("Leave dates must be unique within a batch")

    employee = await _resolve_employee(auth, payload.employee_email)
    leave_type = await _resolve_leave_type(session, payload.leave_type_name)

    per_item = [
        await calculate_consumed_days(item.leave_on, item.leave_on, item.is_half_day) for item in payload.leaves
    ]
    total_days = sum(per_item)
    batch_id = uuid.uuid4()
    created: list[LeaveRequest] = []

    async with transaction(session):
        balance = await ledger.require_balance_for_update(session, employee.id, leave_type.id, year)
        ledger.ensure_available(balance, total_days)

        for item in payload.leaves:
            leave_request = LeaveRequest(
                employee_id=employee.id,
                leave_type_id=leave_type.id,
                start_date=item.leave_on,
                end_date=item.leave_on,
                half_day=item.is_half_day,
                reason="Batch leave request",
                status=LeaveRequestStatus.PENDING.value,
                batch_id=batch_id,
            )
            session.add(leave_request)
            await session.flush()
            await write_leave_audit(
                session,
                leave_request_id=leave_request.id,
                action=LeaveAuditAction.CREATED,
                performed_by_id=auth.user_id,
                details=f"Leave request created in batch {batch_id}",
                new_status=LeaveRequestStatus.PENDING,
            )
            created.append(leave_request)

        await ledger.debit(
            session,
            employee_id=employee.id,
            leave_type_id=leave_type.id,
            year=year,
            days=total_days,
            source_type=LedgerSourceType.BATCH,
            source_id=str(batch_id),
            performed_by=auth.user_id,
        )
        remaining = balance.remaining

    logger.info(
        "Batch %s created for employee %s: %d requests, %s days",
        batch_id,
        employee.id,
        len(created),
        total_days,
    )
    for leave_request in created:
        await notify(NotificationEvent.SUBMITTED, leave_request, employee)

    return LeaveBatchResponse(
        success=True,
        message=f"Successfully created {len(created)} leave requests",
        batch_id=batch_id,
        requests=[build_request_response(r) for r in created],
        total_days=total_days,
        remaining_balance=remaining,
    )
