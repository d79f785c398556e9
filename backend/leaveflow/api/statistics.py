# ruff: noqa: TC001
from __future__ import annotations

from fastapi import APIRouter

from leaveflow.api.deps import AuthDep, TodayDep
from leaveflow.db import SessionDep
from leaveflow.schemas.statistics import LeaveStatisticsResponse
from leaveflow.services import statistics as statistics_service

statistics_router = APIRouter(prefix="/leave-statistics", tags=["leave-statistics"])


@statistics_router.get("", response_model=LeaveStatisticsResponse)
async def get_leave_statistics(
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> LeaveStatisticsResponse:
    """Dashboard statistics (managers and HR only)."""
    return await statistics_service.get_leave_statistics(session, auth, today)
