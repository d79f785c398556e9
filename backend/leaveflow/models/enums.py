from __future__ import annotations

import enum


class LeaveRequestStatus(enum.StrEnum):
    """Lifecycle state of a leave request."""

    PENDING = "pending"
    MANAGER_APPROVED = "manager_approved"
    MANAGER_REJECTED = "manager_rejected"
    HR_APPROVED = "hr_approved"
    HR_REJECTED = "hr_rejected"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset(
    {
        LeaveRequestStatus.MANAGER_REJECTED,
        LeaveRequestStatus.HR_APPROVED,
        LeaveRequestStatus.HR_REJECTED,
        LeaveRequestStatus.CANCELLED,
    }
)

IN_FLIGHT_STATUSES = frozenset({LeaveRequestStatus.PENDING, LeaveRequestStatus.MANAGER_APPROVED})


class UserRole(enum.StrEnum):
    """Role of the authenticated caller."""

    EMPLOYEE = "employee"
    MANAGER = "manager"
    HR = "hr"
    SERVICE = "service"


class LeaveAction(enum.StrEnum):
    """Action a caller asks to apply to a request."""

    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"


class LeaveAuditAction(enum.StrEnum):
    """Action recorded in a request's audit trail."""

    CREATED = "created"
    UPDATED = "updated"
    APPROVED_BY_MANAGER = "approved_by_manager"
    REJECTED_BY_MANAGER = "rejected_by_manager"
    APPROVED_BY_HR = "approved_by_hr"
    REJECTED_BY_HR = "rejected_by_hr"
    CANCELLED = "cancelled"


class LedgerEntryType(enum.StrEnum):
    """Type of ledger entry affecting a balance."""

    ALLOCATION = "ALLOCATION"
    DEBIT = "DEBIT"
    BATCH_DEBIT = "BATCH_DEBIT"


class LedgerSourceType(enum.StrEnum):
    """Origin of a ledger entry."""

    REQUEST = "REQUEST"
    BATCH = "BATCH"
    ADMIN = "ADMIN"
