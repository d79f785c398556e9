# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import UUIDBase, _now_utc


class LeaveBalance(UUIDBase, table=True):
    """Per-year day counters for one employee and leave type.

    ``allocated - used`` is the only figure ever compared against requested days.
    """

    __tablename__ = "leave_balance"
    __table_args__ = (
        sa.UniqueConstraint("employee_id", "leave_type_id", "year", name="uq_balance_employee_type_year"),
    )

    employee_id: uuid.UUID = Field(index=True)
    leave_type_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_type.id"), nullable=False, index=True),
    )
    year: int
    allocated: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    used: float = Field(default=0, sa_column_kwargs={"server_default": "0"})
    updated_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    version: int = Field(default=1, sa_column_kwargs={"server_default": "1"})

    @property
    def remaining(self) -> float:
        return self.allocated - self.used
