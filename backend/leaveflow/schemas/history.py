# ruff: noqa: TC001, TC003
from __future__ import annotations

import enum
import uuid
from datetime import date

from pydantic import BaseModel, Field

from leaveflow.models.enums import LeaveRequestStatus
from leaveflow.schemas.request import LeaveRequestResponse


class HistorySortField(enum.StrEnum):
    START_DATE = "start_date"
    END_DATE = "end_date"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    STATUS = "status"
    LEAVE_TYPE = "leave_type"


class SortDirection(enum.StrEnum):
    ASC = "asc"
    DESC = "desc"


class LeaveHistoryQuery(BaseModel):
    """Filters, ordering and paging for the leave history."""

    employee_id: uuid.UUID | None = None
    leave_type_id: uuid.UUID | None = None
    status: LeaveRequestStatus | None = None
    start_date: date | None = None
    end_date: date | None = None
    sort_by: HistorySortField = HistorySortField.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, le=100)


class LeaveHistoryResponse(BaseModel):
    """One page of leave history."""

    items: list[LeaveRequestResponse]
    total: int
    page: int
    page_size: int
    has_more: bool
