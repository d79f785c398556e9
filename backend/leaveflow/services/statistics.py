"""Dashboard statistics over leave requests, for managers and HR."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leaveflow.exceptions import ForbiddenError
from leaveflow.models.enums import LeaveRequestStatus, UserRole
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.request import LeaveRequest
from leaveflow.schemas.statistics import LeaveStatisticsResponse, LeaveTypeReport
from leaveflow.services.employee import get_employee_service
from leaveflow.services.leave_type import build_leave_type_response

if TYPE_CHECKING:
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.schemas.auth import AuthContext


async def get_leave_statistics(session: AsyncSession, auth: AuthContext, today: date) -> LeaveStatisticsResponse:
    """Summarize the approval queue, who is away on ``today`` and approved leave per active type.

    Percentages are shares of all fully approved requests across active types.
    """
    if auth.role not in (UserRole.MANAGER, UserRole.HR):
        raise ForbiddenError("Not authorized to view leave statistics")

    pending_result = await session.execute(
        select(func.count())
        .select_from(LeaveRequest)
        .where(col(LeaveRequest.status) == LeaveRequestStatus.PENDING.value)
    )
    pending_approvals = pending_result.scalar_one()

    on_leave_result = await session.execute(
        select(func.count())
        .select_from(LeaveRequest)
        .where(
            col(LeaveRequest.status) == LeaveRequestStatus.HR_APPROVED.value,
            col(LeaveRequest.start_date) <= today,
            col(LeaveRequest.end_date) >= today,
        )
    )
    on_leave_today = on_leave_result.scalar_one()

    employees = await get_employee_service().list_employees()
    total_employees = sum(1 for e in employees if e.role == UserRole.EMPLOYEE)

    types_result = await session.execute(
        select(LeaveType).where(col(LeaveType.active).is_(True)).order_by(col(LeaveType.name))
    )
    leave_types = list(types_result.scalars().all())

    counts_result = await session.execute(
        select(col(LeaveRequest.leave_type_id), func.count())
        .where(col(LeaveRequest.status) == LeaveRequestStatus.HR_APPROVED.value)
        .group_by(col(LeaveRequest.leave_type_id))
    )
    approved_by_type = dict(counts_result.tuples().all())

    counts = [approved_by_type.get(t.id, 0) for t in leave_types]
    total_approved = sum(counts)
    reports = [
        LeaveTypeReport(
            leave_type=build_leave_type_response(leave_type),
            count=count,
            percentage=count / total_approved * 100 if total_approved else 0.0,
        )
        for leave_type, count in zip(leave_types, counts, strict=True)
    ]

    return LeaveStatisticsResponse(
        as_of=today,
        pending_approvals=pending_approvals,
        total_employees=total_employees,
        on_leave_today=on_leave_today,
        leave_reports=reports,
    )
