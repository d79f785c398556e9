# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from typing import Annotated

from fastapi import Depends, Header, Query

from leaveflow.models.enums import UserRole
from leaveflow.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: UserRole = Header(default=UserRole.EMPLOYEE),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(user_id=x_user_id, role=x_role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def resolve_year(year: int | None = Query(default=None, ge=1900, le=9999)) -> int:
    """Balance year for the call: the ``year`` query parameter or the current calendar year."""
    return year if year is not None else datetime.now(UTC).year


YearDep = Annotated[int, Depends(resolve_year)]


async def resolve_today(on: date | None = Query(default=None)) -> date:
    """Reference date for the call: the ``on`` query parameter or today's UTC date."""
    return on if on is not None else datetime.now(UTC).date()


TodayDep = Annotated[date, Depends(resolve_today)]
