# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import TimestampMixin, UUIDBase, _now_utc
from leaveflow.models.enums import LeaveRequestStatus


class LeaveRequest(UUIDBase, TimestampMixin, table=True):
    """An employee's leave request with two-stage approval state."""

    __tablename__ = "leave_request"
    __table_args__ = (
        sa.Index("ix_leave_request_employee_type", "employee_id", "leave_type_id"),
        sa.CheckConstraint("start_date <= end_date", name="ck_leave_request_date_order"),
    )

    employee_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    half_day: bool = False
    reason: str | None = None
    status: str = Field(
        default=LeaveRequestStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "pending"}
    )
    batch_id: uuid.UUID | None = Field(default=None, index=True)

    manager_id: uuid.UUID | None = None
    manager_comment: str | None = None
    manager_action_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]
    hr_id: uuid.UUID | None = None
    hr_comment: str | None = None
    hr_action_at: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]

    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now()},
    )
