# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import UUIDBase, _now_utc


class LeaveAudit(UUIDBase, table=True):
    """Immutable record of one lifecycle event on a leave request."""

    __tablename__ = "leave_audit"
    __table_args__ = (sa.Index("ix_leave_audit_request_timestamp", "leave_request_id", "timestamp"),)

    leave_request_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_request.id"), nullable=False),
    )
    action: str = Field(max_length=50)
    performed_by_id: uuid.UUID
    details: str | None = None
    previous_status: str | None = Field(default=None, max_length=50)
    new_status: str | None = Field(default=None, max_length=50)
    timestamp: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
