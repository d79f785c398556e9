# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel, Field

from leaveflow.schemas.request import LeaveRequestResponse


class BatchLeaveItem(BaseModel):
    """One single-day entry of a batch."""

    leave_on: date
    is_half_day: bool = False


class CreateLeaveBatchPayload(BaseModel):
    """Request body for creating several single-day requests at once.

    ``employee_email`` is required when the caller is a service principal and
    names the employee the batch is created for.
    """

    leaves: list[BatchLeaveItem]
    leave_type_name: str | None = Field(default=None, max_length=255)
    employee_email: str | None = Field(default=None, max_length=320)


class LeaveBatchResponse(BaseModel):
    """Result of a committed batch."""

    success: bool
    message: str
    batch_id: uuid.UUID
    requests: list[LeaveRequestResponse]
    total_days: float
    remaining_balance: float
