# ruff: noqa: TC001
from __future__ import annotations

from fastapi import APIRouter, status

from leaveflow.api.deps import AuthDep, YearDep
from leaveflow.db import SessionDep
from leaveflow.schemas.batch import CreateLeaveBatchPayload, LeaveBatchResponse
from leaveflow.services import batch as batch_service

batches_router = APIRouter(prefix="/leave-batches", tags=["leave-requests"])


@batches_router.post("", response_model=LeaveBatchResponse, status_code=status.HTTP_201_CREATED)
async def create_leave_batch(
    payload: CreateLeaveBatchPayload,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
) -> LeaveBatchResponse:
    """Create one single-day request per date; all or nothing."""
    return await batch_service.create_leave_batch(session, auth, payload, year)
