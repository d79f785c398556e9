from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leaveflow.models.enums import UserRole
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.request import LeaveRequest
from leaveflow.schemas.history import HistorySortField, LeaveHistoryResponse, SortDirection
from leaveflow.services.request import build_request_response

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.history import LeaveHistoryQuery

_SORT_COLUMNS = {
    HistorySortField.START_DATE: col(LeaveRequest.start_date),
    HistorySortField.END_DATE: col(LeaveRequest.end_date),
    HistorySortField.CREATED_AT: col(LeaveRequest.created_at),
    HistorySortField.UPDATED_AT: col(LeaveRequest.updated_at),
    HistorySortField.STATUS: col(LeaveRequest.status),
    HistorySortField.LEAVE_TYPE: col(LeaveType.name),
}


async def get_leave_history(
    session: AsyncSession,
    auth: AuthContext,
    query: LeaveHistoryQuery,
) -> LeaveHistoryResponse:
    """Filtered, sorted, paginated view over leave requests.

    With both ``start_date`` and ``end_date`` a request matches when its range
    overlaps the window; a single bound is open-ended. Employees only ever see
    their own requests.
    """
    employee_id = auth.user_id if auth.role == UserRole.EMPLOYEE else query.employee_id

    filters = []
    if employee_id is not None:
        filters.append(col(LeaveRequest.employee_id) == employee_id)
    if query.leave_type_id is not None:
        filters.append(col(LeaveRequest.leave_type_id) == query.leave_type_id)
    if query.status is not None:
        filters.append(col(LeaveRequest.status) == query.status.value)
    if query.start_date is not None and query.end_date is not None:
        filters.append(col(LeaveRequest.start_date) <= query.end_date)
        filters.append(col(LeaveRequest.end_date) >= query.start_date)
    elif query.start_date is not None:
        filters.append(col(LeaveRequest.start_date) >= query.start_date)
    elif query.end_date is not None:
        filters.append(col(LeaveRequest.end_date) <= query.end_date)

    count_result = await session.execute(select(func.count()).select_from(LeaveRequest).where(*filters))
    total = count_result.scalar_one()

    sort_column = _SORT_COLUMNS[query.sort_by]
    ordering = sort_column.asc() if query.sort_direction == SortDirection.ASC else sort_column.desc()

    statement = select(LeaveRequest).where(*filters)
    if query.sort_by == HistorySortField.LEAVE_TYPE:
        statement = statement.join(LeaveType, col(LeaveType.id) == col(LeaveRequest.leave_type_id))

    offset = (query.page - 1) * query.page_size
    result = await session.execute(
        statement.order_by(ordering, col(LeaveRequest.id)).offset(offset).limit(query.page_size)
    )
    requests = list(result.scalars().all())

    return LeaveHistoryResponse(
        items=[build_request_response(r) for r in requests],
        total=total,
        page=query.page,
        page_size=query.page_size,
        has_more=offset + len(requests) < total,
    )
