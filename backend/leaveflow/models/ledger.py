# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from leaveflow.models.base import UUIDBase, _now_utc


class LeaveLedgerEntry(UUIDBase, table=True):
    """Append-only record of every change to a balance's counters."""

    __tablename__ = "leave_ledger_entry"
    __table_args__ = (
        sa.Index("ix_ledger_employee_type_year", "employee_id", "leave_type_id", "year"),
        sa.UniqueConstraint("source_type", "source_id", "entry_type", name="uq_ledger_idempotency"),
    )

    balance_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_balance.id"), nullable=False, index=True),
    )
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    year: int
    entry_type: str = Field(max_length=50)
    amount_days: float
    source_type: str = Field(max_length=50)
    source_id: str = Field(max_length=255)
    performed_by: uuid.UUID | None = None
    metadata_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
    created_at: datetime = Field(
        default_factory=_now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
