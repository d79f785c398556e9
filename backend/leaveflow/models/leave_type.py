from __future__ import annotations

from sqlmodel import Field

from leaveflow.models.base import TimestampMixin, UUIDBase


class LeaveType(UUIDBase, TimestampMixin, table=True):
    """A kind of leave (Annual, Sick, ...) that balances and requests refer to."""

    __tablename__ = "leave_type"

    name: str = Field(max_length=255, unique=True)
    description: str | None = None
    color: str = Field(default="#3498db", max_length=20)
    active: bool = Field(default=True, sa_column_kwargs={"server_default": "1"})
