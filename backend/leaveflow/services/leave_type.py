from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leaveflow.db import transaction
from leaveflow.exceptions import BadInputError, ForbiddenError, NotFoundError
from leaveflow.models.enums import UserRole
from leaveflow.models.leave_type import LeaveType
from leaveflow.schemas.leave_type import LeaveTypeListResponse, LeaveTypeResponse

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

    from leaveflow.schemas.auth import AuthContext
    from leaveflow.schemas.leave_type import CreateLeaveTypePayload, UpdateLeaveTypePayload

logger = logging.getLogger(__name__)


def build_leave_type_response(leave_type: LeaveType) -> LeaveTypeResponse:
    return LeaveTypeResponse(
        id=leave_type.id,
        name=leave_type.name,
        description=leave_type.description,
        color=leave_type.color,
        active=leave_type.active,
        created_at=leave_type.created_at,
    )


def _require_hr(auth: AuthContext) -> None:
    if auth.role != UserRole.HR:
        raise ForbiddenError("Not authorized. Only HR can manage leave types.")


async def _get_or_404(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveType:
    result = await session.execute(select(LeaveType).where(col(LeaveType.id) == leave_type_id))
    leave_type = result.scalar_one_or_none()
    if leave_type is None:
        raise NotFoundError("Leave type not found")
    return leave_type


async def list_leave_types(session: AsyncSession, active_only: bool = False) -> LeaveTypeListResponse:
    """List leave types ordered by name."""
    query = select(LeaveType)
    if active_only:
        query = query.where(col(LeaveType.active).is_(True))
    result = await session.execute(query.order_by(col(LeaveType.name)))
    leave_types = list(result.scalars().all())
    return LeaveTypeListResponse(items=[build_leave_type_response(t) for t in leave_types], total=len(leave_types))


async def get_leave_type(session: AsyncSession, leave_type_id: uuid.UUID) -> LeaveTypeResponse:
    return build_leave_type_response(await _get_or_404(session, leave_type_id))


async def create_leave_type(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateLeaveTypePayload,
) -> LeaveTypeResponse:
    """Create a leave type. Names are unique, compared case-insensitively."""
    _require_hr(auth)

    async with transaction(session):
        existing = await session.execute(
            select(LeaveType).where(func.lower(col(LeaveType.name)) == payload.name.strip().lower())
        )
        if existing.scalar_one_or_none() is not None:
            raise BadInputError(f"Leave type '{payload.name}' already exists")

        leave_type = LeaveType(
            name=payload.name.strip(),
            description=payload.description,
            active=payload.active,
        )
        if payload.color is not None:
            leave_type.color = payload.color
        session.add(leave_type)
        await session.flush()

    logger.info("Leave type %s created (%s)", leave_type.name, leave_type.id)
    return build_leave_type_response(leave_type)


async def update_leave_type(
    session: AsyncSession,
    auth: AuthContext,
    leave_type_id: uuid.UUID,
    payload: UpdateLeaveTypePayload,
) -> LeaveTypeResponse:
    """Update description, color or the active flag.

    Deactivating a type only hides it from balance initialization and batch
    lookup; existing balances and requests keep referring to it.
    """
    _require_hr(auth)

    async with transaction(session):
        leave_type = await _get_or_404(session, leave_type_id)
        for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(leave_type, field, value)
        await session.flush()

    return build_leave_type_response(leave_type)
