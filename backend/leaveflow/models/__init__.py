from sqlmodel import SQLModel

from leaveflow.models.audit import LeaveAudit
from leaveflow.models.balance import LeaveBalance
from leaveflow.models.base import TimestampMixin, UUIDBase
from leaveflow.models.enums import (
    LeaveAction,
    LeaveAuditAction,
    LeaveRequestStatus,
    LedgerEntryType,
    LedgerSourceType,
    UserRole,
)
from leaveflow.models.ledger import LeaveLedgerEntry
from leaveflow.models.leave_type import LeaveType
from leaveflow.models.request import LeaveRequest

__all__ = [
    "LeaveAction",
    "LeaveAudit",
    "LeaveAuditAction",
    "LeaveBalance",
    "LeaveLedgerEntry",
    "LeaveRequest",
    "LeaveRequestStatus",
    "LeaveType",
    "LedgerEntryType",
    "LedgerSourceType",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
    "UserRole",
]
