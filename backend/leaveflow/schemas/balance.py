# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, Field

from leaveflow.models.enums import LedgerEntryType, LedgerSourceType


def _check_half_units(value: float) -> float:
    if not (value * 2).is_integer():
        msg = "allocation must be a whole or half number of days"
        raise ValueError(msg)
    return value


HalfDays = Annotated[float, Field(ge=0), AfterValidator(_check_half_units)]


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class InitializeBalancesPayload(BaseModel):
    """Request body for initializing an employee's balances for a year."""

    employee_id: uuid.UUID
    default_allocation: HalfDays


class UpdateAllocationPayload(BaseModel):
    """Request body for changing a single balance's allocation."""

    allocated: HalfDays
    reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    """Balance for one employee, leave type and year."""

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_type_id: uuid.UUID
    leave_type_name: str
    year: int
    allocated: float
    used: float
    remaining: float
    pending_days: float
    updated_at: datetime | None


class BalanceListResponse(BaseModel):
    """Balances matching a query."""

    items: list[BalanceResponse]
    total: int


class InitializeBalancesResponse(BaseModel):
    """Outcome of a balance initialization."""

    success: bool
    message: str
    balances: list[BalanceResponse]


class LedgerEntryResponse(BaseModel):
    """A single ledger entry."""

    id: uuid.UUID
    balance_id: uuid.UUID
    entry_type: LedgerEntryType
    amount_days: float
    source_type: LedgerSourceType
    source_id: str
    performed_by: uuid.UUID | None
    metadata_json: dict[str, Any] | None
    created_at: datetime


class LedgerListResponse(BaseModel):
    """Paginated ledger entries."""

    items: list[LedgerEntryResponse]
    total: int
