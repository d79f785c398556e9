# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreateLeaveTypePayload(BaseModel):
    """Request body for creating a leave type."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    color: str | None = Field(default=None, max_length=20)
    active: bool = True


class UpdateLeaveTypePayload(BaseModel):
    """Partial update of a leave type."""

    description: str | None = None
    color: str | None = Field(default=None, max_length=20)
    active: bool | None = None


class LeaveTypeResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    color: str
    active: bool
    created_at: datetime


class LeaveTypeListResponse(BaseModel):
    items: list[LeaveTypeResponse]
    total: int
