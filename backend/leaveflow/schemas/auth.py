# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from leaveflow.models.enums import UserRole


class AuthContext(BaseModel):
    """Identity of the caller as supplied by the authentication layer."""

    user_id: uuid.UUID
    role: UserRole = UserRole.EMPLOYEE
