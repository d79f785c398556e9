from __future__ import annotations

import logging
import uuid
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Literal

from sqlalchemy import func, select
from sqlmodel import col

from leaveflow.db import transaction
from leaveflow.exceptions import BadInputError, ForbiddenError, InsufficientBalanceError, NotFoundError
from leaveflow.models.balance import LeaveBalance
from leaveflow.models.enums import IN_FLIGHT_STATUSES, LedgerEntryType, LedgerSourceType, UserRole
from leaveflow.models.ledger import LeaveLedgerEntry
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.request import LeaveRequest
from leaveflow.schemas.balance import (
    BalanceListResponse,
    BalanceResponse,
    InitializeBalancesResponse,
    LedgerEntryResponse,
    LedgerListResponse,
)
from leaveflow.services.duration import calculate_consumed_days
from leaveflow.services.employee import get_employee_service

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.balance import InitializeBalancesPayload, UpdateAllocationPayload

logger = logging.getLogger(__name__)

MissingBalancePolicy = Literal["raise", "ignore"]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_ledger_entry_response(entry: LeaveLedgerEntry) -> LedgerEntryResponse:
    return LedgerEntryResponse(
        id=entry.id,
        balance_id=entry.balance_id,
        entry_type=LedgerEntryType(entry.entry_type),
        amount_days=entry.amount_days,
        source_type=LedgerSourceType(entry.source_type),
        source_id=entry.source_id,
        performed_by=entry.performed_by,
        metadata_json=entry.metadata_json,
        created_at=entry.created_at,
    )


def _build_balance_response(balance: LeaveBalance, leave_type_name: str, pending_days: float) -> BalanceResponse:
    return BalanceResponse(
        id=balance.id,
        employee_id=balance.employee_id,
        leave_type_id=balance.leave_type_id,
        leave_type_name=leave_type_name,
        year=balance.year,
        allocated=balance.allocated,
        used=balance.used,
        remaining=balance.remaining,
        pending_days=pending_days,
        updated_at=balance.updated_at,
    )


async def get_balance_for_update(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
) -> LeaveBalance | None:
    """Fetch the balance row with a FOR UPDATE lock so writers serialize on it."""
    result = await session.execute(
        select(LeaveBalance)
        .where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type_id) == leave_type_id,
            col(LeaveBalance.year) == year,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def require_balance_for_update(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
) -> LeaveBalance:
    balance = await get_balance_for_update(session, employee_id, leave_type_id, year)
    if balance is None:
        raise NotFoundError(f"No leave balance found for this leave type in {year}")
    return balance


def ensure_available(balance: LeaveBalance, days: float) -> None:
    """Fail when ``days`` exceeds ``allocated - used``."""
    if days > balance.remaining:
        raise InsufficientBalanceError(available=balance.remaining, requested=days)


def _append_entry(
    session: AsyncSession,
    balance: LeaveBalance,
    *,
    entry_type: LedgerEntryType,
    amount_days: float,
    source_type: LedgerSourceType,
    source_id: str,
    performed_by: uuid.UUID | None = None,
    metadata: dict[str, object] | None = None,
) -> LeaveLedgerEntry:
    entry = LeaveLedgerEntry(
        balance_id=balance.id,
        employee_id=balance.employee_id,
        leave_type_id=balance.leave_type_id,
        year=balance.year,
        entry_type=entry_type.value,
        amount_days=amount_days,
        source_type=source_type.value,
        source_id=source_id,
        performed_by=performed_by,
        metadata_json=metadata,
    )
    session.add(entry)
    return entry


async def _pending_days(session: AsyncSession, balance: LeaveBalance) -> float:
    """Days requested by in-flight requests that start in the balance's year.

    Batch-created requests are excluded since the batch already debited them.
    """
    result = await session.execute(
        select(LeaveRequest).where(
            col(LeaveRequest.employee_id) == balance.employee_id,
            col(LeaveRequest.leave_type_id) == balance.leave_type_id,
            col(LeaveRequest.status).in_([s.value for s in IN_FLIGHT_STATUSES]),
            col(LeaveRequest.batch_id).is_(None),
            col(LeaveRequest.start_date) >= date(balance.year, 1, 1),
            col(LeaveRequest.start_date) <= date(balance.year, 12, 31),
        )
    )
    total = 0.0
    for request in result.scalars().all():
        total += await calculate_consumed_days(request.start_date, request.end_date, request.half_day)
    return total


# ---------------------------------------------------------------------------
# Ledger operations (run inside the caller's transaction)
# ---------------------------------------------------------------------------


async def available_for(
    session: AsyncSession,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
) -> float:
    """Return ``allocated - used`` for the balance, the only figure compared against requests."""
    result = await session.execute(
        select(LeaveBalance).where(
            col(LeaveBalance.employee_id) == employee_id,
            col(LeaveBalance.leave_type_id) == leave_type_id,
            col(LeaveBalance.year) == year,
        )
    )
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NotFoundError(f"No leave balance found for this leave type in {year}")
    return balance.remaining


async def debit(
    session: AsyncSession,
    *,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    days: float,
    source_type: LedgerSourceType,
    source_id: str,
    performed_by: uuid.UUID | None = None,
    missing_policy: MissingBalancePolicy = "raise",
) -> LeaveBalance | None:
    """Increment ``used`` by ``days`` after re-checking availability under a row lock.

    Appends a DEBIT (or BATCH_DEBIT) ledger entry whose
    ``(source_type, source_id, entry_type)`` is unique, so the same source can
    never be debited twice. Returns None only when the balance row is missing
    and ``missing_policy`` is ``"ignore"``.
    """
    balance = await get_balance_for_update(session, employee_id, leave_type_id, year)
    if balance is None:
        if missing_policy == "ignore":
            logger.warning(
                "Debit of %s days skipped: no balance for employee %s, leave type %s, year %s",
                days,
                employee_id,
                leave_type_id,
                year,
            )
            return None
        raise NotFoundError(f"No leave balance found for this leave type in {year}")

    ensure_available(balance, days)

    balance.used += days
    balance.version += 1
    balance.updated_at = datetime.now(UTC)
    entry_type = LedgerEntryType.BATCH_DEBIT if source_type == LedgerSourceType.BATCH else LedgerEntryType.DEBIT
    _append_entry(
        session,
        balance,
        entry_type=entry_type,
        amount_days=-days,
        source_type=source_type,
        source_id=source_id,
        performed_by=performed_by,
    )
    await session.flush()
    return balance


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def initialize_balances(
    session: AsyncSession,
    auth: AuthContext,
    payload: InitializeBalancesPayload,
    year: int,
) -> InitializeBalancesResponse:
    """Create or reset the employee's balance for every active leave type.

    Existing rows keep ``used`` and have ``allocated`` overwritten. When no
    leave type is active nothing is looked up or written and
    ``success=False`` is returned.
    """
    if auth.role != UserRole.HR:
        raise ForbiddenError("Not authorized to initialize leave balances")

    employee = await get_employee_service().get_employee(payload.employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")

    types_result = await session.execute(
        select(LeaveType).where(col(LeaveType.active).is_(True)).order_by(col(LeaveType.name))
    )
    leave_types = list(types_result.scalars().all())
    if not leave_types:
        return InitializeBalancesResponse(success=False, message="No active leave types found", balances=[])

    touched: list[tuple[LeaveBalance, str]] = []
    async with transaction(session):
        existing_result = await session.execute(
            select(LeaveBalance)
            .where(
                col(LeaveBalance.employee_id) == payload.employee_id,
                col(LeaveBalance.year) == year,
                col(LeaveBalance.leave_type_id).in_([lt.id for lt in leave_types]),
            )
            .with_for_update()
        )
        existing = {b.leave_type_id: b for b in existing_result.scalars().all()}

        for leave_type in leave_types:
            balance = existing.get(leave_type.id)
            previous: float | None = None
            if balance is None:
                balance = LeaveBalance(
                    employee_id=payload.employee_id,
                    leave_type_id=leave_type.id,
                    year=year,
                    allocated=payload.default_allocation,
                    used=0,
                )
                session.add(balance)
                await session.flush()
            else:
                previous = balance.allocated
                balance.allocated = payload.default_allocation
                balance.version += 1
                balance.updated_at = datetime.now(UTC)

            _append_entry(
                session,
                balance,
                entry_type=LedgerEntryType.ALLOCATION,
                amount_days=payload.default_allocation,
                source_type=LedgerSourceType.ADMIN,
                source_id=str(uuid.uuid4()),
                performed_by=auth.user_id,
                metadata={"previous_allocated": previous, "reason": "initialize"},
            )
            touched.append((balance, leave_type.name))

        await session.flush()

    logger.info(
        "Initialized %d balances for employee %s, year %s, allocation %s",
        len(touched),
        payload.employee_id,
        year,
        payload.default_allocation,
    )
    balances = [
        _build_balance_response(balance, name, await _pending_days(session, balance)) for balance, name in touched
    ]
    return InitializeBalancesResponse(
        success=True,
        message=f"Initialized {len(balances)} leave balances for {year}",
        balances=balances,
    )


async def list_balances(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID | None,
    year: int,
) -> BalanceListResponse:
    """List balances for a year. Employees only ever see their own."""
    if auth.role == UserRole.EMPLOYEE:
        employee_id = auth.user_id

    query = (
        select(LeaveBalance, LeaveType.name)
        .join(LeaveType, col(LeaveType.id) == col(LeaveBalance.leave_type_id))
        .where(col(LeaveBalance.year) == year)
        .order_by(col(LeaveBalance.employee_id), col(LeaveType.name))
    )
    if employee_id is not None:
        query = query.where(col(LeaveBalance.employee_id) == employee_id)

    result = await session.execute(query)
    items = [
        _build_balance_response(balance, name, await _pending_days(session, balance))
        for balance, name in result.all()
    ]
    return BalanceListResponse(items=items, total=len(items))


async def update_allocation(
    session: AsyncSession,
    auth: AuthContext,
    balance_id: uuid.UUID,
    payload: UpdateAllocationPayload,
) -> BalanceResponse:
    """Set a balance's allocation (HR only). It may never drop below ``used``."""
    if auth.role != UserRole.HR:
        raise ForbiddenError("Not authorized to update leave balances")

    async with transaction(session):
        result = await session.execute(
            select(LeaveBalance).where(col(LeaveBalance.id) == balance_id).with_for_update()
        )
        balance = result.scalar_one_or_none()
        if balance is None:
            raise NotFoundError("Leave balance not found")
        if payload.allocated < balance.used:
            raise BadInputError(f"Allocation {payload.allocated:g} is below days already used ({balance.used:g})")

        previous = balance.allocated
        balance.allocated = payload.allocated
        balance.version += 1
        balance.updated_at = datetime.now(UTC)
        _append_entry(
            session,
            balance,
            entry_type=LedgerEntryType.ALLOCATION,
            amount_days=payload.allocated,
            source_type=LedgerSourceType.ADMIN,
            source_id=str(uuid.uuid4()),
            performed_by=auth.user_id,
            metadata={"previous_allocated": previous, "reason": payload.reason},
        )
        await session.flush()

    type_result = await session.execute(select(LeaveType.name).where(col(LeaveType.id) == balance.leave_type_id))
    return _build_balance_response(balance, type_result.scalar_one(), await _pending_days(session, balance))


async def get_balance_ledger(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    leave_type_id: uuid.UUID,
    year: int,
    offset: int = 0,
    limit: int = 50,
) -> LedgerListResponse:
    """Paginated ledger entries for one balance, newest first."""
    if auth.role == UserRole.EMPLOYEE and employee_id != auth.user_id:
        raise ForbiddenError("Not authorized to view this ledger")

    base_filter = [
        col(LeaveLedgerEntry.employee_id) == employee_id,
        col(LeaveLedgerEntry.leave_type_id) == leave_type_id,
        col(LeaveLedgerEntry.year) == year,
    ]
    count_result = await session.execute(select(func.count()).select_from(LeaveLedgerEntry).where(*base_filter))
    total = count_result.scalar_one()

    entries_result = await session.execute(
        select(LeaveLedgerEntry)
        .where(*base_filter)
        .order_by(col(LeaveLedgerEntry.created_at).desc())
        .offset(offset)
        .limit(limit)
    )
    entries = list(entries_result.scalars().all())
    return LedgerListResponse(items=[_build_ledger_entry_response(e) for e in entries], total=total)
