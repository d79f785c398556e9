# ruff: noqa: TC001, TC003
from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from leaveflow.schemas.leave_type import LeaveTypeResponse


class LeaveTypeReport(BaseModel):
    """Fully approved requests of one active leave type."""

    leave_type: LeaveTypeResponse
    count: int
    percentage: float


class LeaveStatisticsResponse(BaseModel):
    """Dashboard figures for managers and HR."""

    as_of: date
    pending_approvals: int
    total_employees: int
    on_leave_today: int
    leave_reports: list[LeaveTypeReport]
