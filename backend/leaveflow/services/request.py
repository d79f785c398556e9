# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leaveflow.config import get_settings
from leaveflow.db import transaction
from leaveflow.exceptions import BadInputError, ForbiddenError, NotFoundError
from leaveflow.models.enums import LeaveAction, LeaveAuditAction, LeaveRequestStatus, LedgerSourceType, UserRole
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.request import LeaveRequest
from leaveflow.schemas.request import LeaveRequestListResponse, LeaveRequestResponse
from leaveflow.services import balance as ledger
from leaveflow.services.audit import write_leave_audit
from leaveflow.services.duration import calculate_consumed_days
from leaveflow.services.employee import get_employee_service
from leaveflow.services.notification import NotificationEvent, notify
from leaveflow.services.workflow import (
    actionable_statuses,
    apply_transition,
    authorize_cancel,
    authorize_decision,
    describe,
    require_comment,
    resolve_transition,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.request import (
        CreateLeaveRequestPayload,
        DecisionPayload,
        UpdateLeaveRequestPayload,
    )
    from leaveflow.services.workflow import Transition

logger = logging.getLogger(__name__)

_BATCH_LOCKED_FIELDS = frozenset({"start_date", "end_date", "half_day", "leave_type_id"})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_request_response(request: LeaveRequest) -> LeaveRequestResponse:
    """Map a request model to its response schema."""
    return LeaveRequestResponse(
        id=request.id,
        employee_id=request.employee_id,
        leave_type_id=request.leave_type_id,
        start_date=request.start_date,
        end_date=request.end_date,
        half_day=request.half_day,
        reason=request.reason,
        status=LeaveRequestStatus(request.status),
        batch_id=request.batch_id,
        manager_id=request.manager_id,
        manager_comment=request.manager_comment,
        manager_action_at=request.manager_action_at,
        hr_id=request.hr_id,
        hr_comment=request.hr_comment,
        hr_action_at=request.hr_action_at,
        created_at=request.created_at,
        updated_at=request.updated_at,
    )


async def _get_request_or_404(
    session: AsyncSession,
    request_id: uuid.UUID,
    for_update: bool = False,
) -> LeaveRequest:
    """Fetch a request by ID, optionally locking it. Raises 404 if not found."""
    query = select(LeaveRequest).where(col(LeaveRequest.id) == request_id)
    if for_update:
        query = query.with_for_update()
    result = await session.execute(query)
    request = result.scalar_one_or_none()
    if request is None:
        raise NotFoundError("Leave request not found")
    return request


async def _get_leave_type_or_404(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveType:
    result = await session.execute(select(LeaveType).where(col(LeaveType.id) == leave_type_id))
    leave_type = result.scalar_one_or_none()
    if leave_type is None:
        raise NotFoundError("Leave type not found")
    return leave_type


async def _notify_transition(event: NotificationEvent, request: LeaveRequest, actor_id: uuid.UUID) -> None:
    directory = get_employee_service()
    try:
        employee = await directory.get_employee(request.employee_id)
        actor = await directory.get_employee(actor_id) if actor_id != request.employee_id else employee
    except Exception:
        logger.exception("Employee lookup failed, %s notification for request %s not sent", event, request.id)
        return
    await notify(event, request, employee, actor)


async def _transition(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    action: LeaveAction,
    year: int,
    comment: str | None = None,
) -> LeaveRequestResponse:
    """Apply one lifecycle action to a request.

    Flow:
    1. Lock the request row.
    2. Resolve the transition for (status, role, action); anything unmapped fails.
    3. For HR approval of a request the batch did not pre-debit: lock the
       balance, re-check availability and debit it.
    4. Stamp actor fields, move status, append audit.
    5. Commit, then notify.
    """
    async with transaction(session):
        leave_request = await _get_request_or_404(session, request_id, for_update=True)

        if action == LeaveAction.CANCEL:
            authorize_cancel(leave_request, auth.user_id, auth.role)

        transition: Transition = resolve_transition(leave_request.status, auth.role, action)
        previous_status = leave_request.status

        if transition.debits_balance and leave_request.batch_id is None:
            days = await calculate_consumed_days(
                leave_request.start_date, leave_request.end_date, leave_request.half_day
            )
            await ledger.debit(
                session,
                employee_id=leave_request.employee_id,
                leave_type_id=leave_request.leave_type_id,
                year=year,
                days=days,
                source_type=LedgerSourceType.REQUEST,
                source_id=str(leave_request.id),
                performed_by=auth.user_id,
                missing_policy=get_settings().missing_balance_policy,
            )

        apply_transition(leave_request, transition, auth.user_id, comment, datetime.now(UTC))
        await session.flush()

        await write_leave_audit(
            session,
            leave_request_id=leave_request.id,
            action=transition.audit_action,
            performed_by_id=auth.user_id,
            details=describe(transition, comment),
            previous_status=previous_status,
            new_status=transition.target,
        )

    logger.info(
        "Leave request %s: %s -> %s by %s %s",
        leave_request.id,
        previous_status,
        transition.target.value,
        auth.role.value,
        auth.user_id,
    )
    await _notify_transition(transition.notification, leave_request, auth.user_id)
    return build_request_response(leave_request)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_request(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeaveRequestPayload,
    year: int,
) -> LeaveRequestResponse:
    """Create a pending leave request.

    The balance is checked, under a row lock, against ``allocated - used`` for
    ``year`` but not debited; the debit happens at HR approval, where the
    check is repeated.
    """
    if payload.start_date > payload.end_date:
        raise BadInputError("Start date must be before end date")

    if auth.role == UserRole.EMPLOYEE and payload.employee_id != auth.user_id:
        raise ForbiddenError("You can only create leave requests for yourself")

    await _get_leave_type_or_404(session, payload.leave_type_id)

    employee = await get_employee_service().get_employee(payload.employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")

    days = await calculate_consumed_days(payload.start_date, payload.end_date, payload.half_day)

    async with transaction(session):
        balance = await ledger.require_balance_for_update(session, payload.employee_id, payload.leave_type_id, year)
        ledger.ensure_available(balance, days)

        leave_request = LeaveRequest(
            employee_id=payload.employee_id,
            leave_type_id=payload.leave_type_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            half_day=payload.half_day,
            reason=payload.reason,
            status=LeaveRequestStatus.PENDING.value,
        )
        session.add(leave_request)
        await session.flush()

        await write_leave_audit(
            session,
            leave_request_id=leave_request.id,
            action=LeaveAuditAction.CREATED,
            performed_by_id=auth.user_id,
            details="Leave request created",
            new_status=LeaveRequestStatus.PENDING,
        )

    logger.info("Leave request %s created for employee %s (%s days)", leave_request.id, employee.id, days)
    await notify(NotificationEvent.SUBMITTED, leave_request, employee)
    return build_request_response(leave_request)


async def update_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: UpdateLeaveRequestPayload,
) -> LeaveRequestResponse:
    """Edit a pending request. Only its own employee may do so.

    This is a plain field edit: the balance is not re-checked.
    """
    changes = payload.model_dump(exclude_unset=True)

    async with transaction(session):
        leave_request = await _get_request_or_404(session, request_id, for_update=True)

        if auth.role != UserRole.EMPLOYEE or leave_request.employee_id != auth.user_id:
            raise ForbiddenError("Not authorized to update this leave request")
        if leave_request.status != LeaveRequestStatus.PENDING:
            raise ForbiddenError("Cannot update a leave request that is not pending")
        if not changes:
            return build_request_response(leave_request)

        # Batch rows were priced by the batch debit; only the reason may change.
        if leave_request.batch_id is not None and _BATCH_LOCKED_FIELDS.intersection(changes):
            raise BadInputError("Dates, half-day and leave type of a batch leave request cannot be changed")

        start_date = changes.get("start_date") or leave_request.start_date
        end_date = changes.get("end_date") or leave_request.end_date
        if start_date > end_date:
            raise BadInputError("Start date must be before end date")
        if changes.get("leave_type_id") is not None:
            await _get_leave_type_or_404(session, changes["leave_type_id"])

        for field, value in changes.items():
            if value is None and field != "reason":
                continue
            setattr(leave_request, field, value)
        leave_request.updated_at = datetime.now(UTC)
        await session.flush()

        await write_leave_audit(
            session,
            leave_request_id=leave_request.id,
            action=LeaveAuditAction.UPDATED,
            performed_by_id=auth.user_id,
            details="Updated " + ", ".join(sorted(changes)),
            previous_status=leave_request.status,
            new_status=leave_request.status,
        )

    return build_request_response(leave_request)


async def approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None,
    year: int,
) -> LeaveRequestResponse:
    """Approve as manager (pending) or HR (manager_approved), by the caller's role."""
    authorize_decision(auth.role, LeaveAction.APPROVE)
    comment = payload.comment if payload else None
    return await _transition(session, auth, request_id, LeaveAction.APPROVE, year, comment)


async def reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None,
    year: int,
) -> LeaveRequestResponse:
    """Reject as manager (pending) or HR (manager_approved). A comment is required."""
    comment = require_comment(payload.comment if payload else None)
    authorize_decision(auth.role, LeaveAction.REJECT)
    return await _transition(session, auth, request_id, LeaveAction.REJECT, year, comment)


def _require_role(auth: AuthContext, role: UserRole) -> None:
    if auth.role != role:
        label = "managers" if role == UserRole.MANAGER else "HR"
        raise ForbiddenError(f"Not authorized. Only {label} can use this action.")


async def manager_approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None,
    year: int,
) -> LeaveRequestResponse:
    _require_role(auth, UserRole.MANAGER)
    return await approve_request(session, auth, request_id, payload, year)


async def manager_reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None,
    year: int,
) -> LeaveRequestResponse:
    require_comment(payload.comment if payload else None)
    _require_role(auth, UserRole.MANAGER)
    return await reject_request(session, auth, request_id, payload, year)


async def hr_approve_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None,
    year: int,
) -> LeaveRequestResponse:
    _require_role(auth, UserRole.HR)
    return await approve_request(session, auth, request_id, payload, year)


async def hr_reject_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: DecisionPayload | None,
    year: int,
) -> LeaveRequestResponse:
    require_comment(payload.comment if payload else None)
    _require_role(auth, UserRole.HR)
    return await reject_request(session, auth, request_id, payload, year)


async def cancel_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
    year: int,
) -> LeaveRequestResponse:
    """Cancel a pending or manager-approved request. The ledger is not touched."""
    return await _transition(session, auth, request_id, LeaveAction.CANCEL, year)


async def get_request(
    session: AsyncSession,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> LeaveRequestResponse:
    """Get a single request. Employees may only read their own."""
    leave_request = await _get_request_or_404(session, request_id)
    if auth.role == UserRole.EMPLOYEE and leave_request.employee_id != auth.user_id:
        raise ForbiddenError("Not authorized to view this leave request")
    return build_request_response(leave_request)


async def list_pending_approvals(session: AsyncSession, auth: AuthContext) -> LeaveRequestListResponse:
    """Requests awaiting the caller's decision, oldest first."""
    authorize_decision(auth.role, LeaveAction.APPROVE)
    statuses = [s.value for s in actionable_statuses(auth.role)]
    result = await session.execute(
        select(LeaveRequest)
        .where(col(LeaveRequest.status).in_(statuses))
        .order_by(col(LeaveRequest.created_at).asc())
    )
    requests = list(result.scalars().all())
    return LeaveRequestListResponse(items=[build_request_response(r) for r in requests], total=len(requests))
