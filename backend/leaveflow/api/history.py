# ruff: noqa: B008, TC001
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from leaveflow.api.deps import AuthDep
from leaveflow.db import SessionDep
from leaveflow.schemas.history import LeaveHistoryQuery, LeaveHistoryResponse
from leaveflow.services import history as history_service

history_router = APIRouter(prefix="/leave-history", tags=["leave-history"])


@history_router.get("", response_model=LeaveHistoryResponse)
async def get_leave_history(
    query: Annotated[LeaveHistoryQuery, Query()],
    session: SessionDep,
    auth: AuthDep,
) -> LeaveHistoryResponse:
    """Filter, sort and page through leave requests."""
    return await history_service.get_leave_history(session, auth, query)
