# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query

from leaveflow.api.deps import AuthDep, YearDep
from leaveflow.db import SessionDep
from leaveflow.schemas.balance import (
    BalanceListResponse,
    BalanceResponse,
    InitializeBalancesPayload,
    InitializeBalancesResponse,
    LedgerListResponse,
    UpdateAllocationPayload,
)
from leaveflow.services import balance as balance_service

balances_router = APIRouter(prefix="/leave-balances", tags=["leave-balances"])


@balances_router.post("/initialize", response_model=InitializeBalancesResponse)
async def initialize_balances(
    payload: InitializeBalancesPayload,
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
) -> InitializeBalancesResponse:
    """Create or reset an employee's balances for every active leave type (HR only)."""
    return await balance_service.initialize_balances(session, auth, payload, year)


@balances_router.get("", response_model=BalanceListResponse)
async def list_balances(
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
    employee_id: uuid.UUID | None = Query(default=None),
) -> BalanceListResponse:
    return await balance_service.list_balances(session, auth, employee_id, year)


@balances_router.get("/ledger", response_model=LedgerListResponse)
async def get_balance_ledger(
    session: SessionDep,
    auth: AuthDep,
    year: YearDep,
    employee_id: uuid.UUID = Query(),
    leave_type_id: uuid.UUID = Query(),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> LedgerListResponse:
    """Paginated ledger entries for one balance, newest first."""
    return await balance_service.get_balance_ledger(
        session, auth, employee_id, leave_type_id, year, offset, limit
    )


@balances_router.patch("/{balance_id}", response_model=BalanceResponse)
async def update_allocation(
    balance_id: uuid.UUID,
    payload: UpdateAllocationPayload,
    session: SessionDep,
    auth: AuthDep,
) -> BalanceResponse:
    """Change a balance's allocation (HR only)."""
    return await balance_service.update_allocation(session, auth, balance_id, payload)
