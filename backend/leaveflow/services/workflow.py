"""Leave request lifecycle: which action a role may apply from which state.

The graph is fixed:

    pending --manager approve--> manager_approved --hr approve--> hr_approved
    pending --manager reject---> manager_rejected
    manager_approved --hr reject--> hr_rejected
    pending | manager_approved --cancel--> cancelled

Anything absent from ``TRANSITIONS`` is rejected with INVALID_TRANSITION
rather than falling through to a default.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import TYPE_CHECKING, NamedTuple

from leaveflow.exceptions import BadInputError, ForbiddenError, InvalidTransitionError
from leaveflow.models.enums import LeaveAction, LeaveAuditAction, LeaveRequestStatus, UserRole
from leaveflow.services.notification import NotificationEvent

if TYPE_CHECKING:
    import uuid

    from leaveflow.models.request import LeaveRequest


class Stage(enum.StrEnum):
    """Which set of actor fields a transition stamps on the request."""

    MANAGER = "manager"
    HR = "hr"
    CANCEL = "cancel"


class Transition(NamedTuple):
    """Outcome of applying an action: target state plus its side effects."""

    source: LeaveRequestStatus
    target: LeaveRequestStatus
    stage: Stage
    audit_action: LeaveAuditAction
    notification: NotificationEvent
    debits_balance: bool = False


_S = LeaveRequestStatus
_R = UserRole
_A = LeaveAction


def _manager(source: _S, target: _S, audit: LeaveAuditAction, event: NotificationEvent) -> Transition:
    return Transition(source, target, Stage.MANAGER, audit, event)


def _hr(source: _S, target: _S, audit: LeaveAuditAction, event: NotificationEvent, debit: bool = False) -> Transition:
    return Transition(source, target, Stage.HR, audit, event, debit)


def _cancel(source: _S) -> Transition:
    return Transition(source, _S.CANCELLED, Stage.CANCEL, LeaveAuditAction.CANCELLED, NotificationEvent.CANCELLED)


TRANSITIONS: dict[tuple[LeaveRequestStatus, UserRole, LeaveAction], Transition] = {
    (_S.PENDING, _R.MANAGER, _A.APPROVE): _manager(
        _S.PENDING, _S.MANAGER_APPROVED, LeaveAuditAction.APPROVED_BY_MANAGER, NotificationEvent.MANAGER_APPROVED
    ),
    (_S.PENDING, _R.MANAGER, _A.REJECT): _manager(
        _S.PENDING, _S.MANAGER_REJECTED, LeaveAuditAction.REJECTED_BY_MANAGER, NotificationEvent.MANAGER_REJECTED
    ),
    (_S.MANAGER_APPROVED, _R.HR, _A.APPROVE): _hr(
        _S.MANAGER_APPROVED,
        _S.HR_APPROVED,
        LeaveAuditAction.APPROVED_BY_HR,
        NotificationEvent.HR_APPROVED,
        debit=True,
    ),
    (_S.MANAGER_APPROVED, _R.HR, _A.REJECT): _hr(
        _S.MANAGER_APPROVED, _S.HR_REJECTED, LeaveAuditAction.REJECTED_BY_HR, NotificationEvent.HR_REJECTED
    ),
    **{
        (source, role, _A.CANCEL): _cancel(source)
        for source in (_S.PENDING, _S.MANAGER_APPROVED)
        for role in (_R.EMPLOYEE, _R.MANAGER, _R.HR)
    },
}

APPROVER_ROLES = frozenset({UserRole.MANAGER, UserRole.HR})


def resolve_transition(status: LeaveRequestStatus | str, role: UserRole, action: LeaveAction) -> Transition:
    """Look up the transition for ``(status, role, action)`` or fail."""
    transition = TRANSITIONS.get((LeaveRequestStatus(status), role, action))
    if transition is None:
        raise InvalidTransitionError(f"Cannot {action.value} a {status} leave request as {role.value}")
    return transition


def actionable_statuses(role: UserRole, action: LeaveAction = LeaveAction.APPROVE) -> list[LeaveRequestStatus]:
    """States from which ``role`` may apply ``action``, in lifecycle order."""
    return [status for status in LeaveRequestStatus if (status, role, action) in TRANSITIONS]


def require_comment(comment: str | None) -> str:
    """Rejections must explain themselves."""
    if comment is None or not comment.strip():
        raise BadInputError("Comment is required when rejecting a leave request")
    return comment.strip()


def authorize_decision(role: UserRole, action: LeaveAction) -> None:
    """Only managers and HR take approve/reject decisions."""
    if role not in APPROVER_ROLES:
        raise ForbiddenError(f"Not authorized to {action.value} leave requests")


def authorize_cancel(request: LeaveRequest, actor_id: uuid.UUID, role: UserRole) -> None:
    """The owner may cancel their own request; managers and HR may cancel any."""
    if role in APPROVER_ROLES:
        return
    if role != UserRole.EMPLOYEE or request.employee_id != actor_id:
        raise ForbiddenError("Not authorized to cancel this leave request")


def apply_transition(
    request: LeaveRequest,
    transition: Transition,
    actor_id: uuid.UUID,
    comment: str | None = None,
    now: datetime | None = None,
) -> None:
    """Move ``request`` to the transition's target and stamp the acting stage."""
    if request.status != transition.source:
        raise InvalidTransitionError(
            f"Leave request is {request.status}, expected {transition.source.value}"
        )
    now = now or datetime.now(UTC)
    match transition.stage:
        case Stage.MANAGER:
            request.manager_id = actor_id
            request.manager_comment = comment
            request.manager_action_at = now
        case Stage.HR:
            request.hr_id = actor_id
            request.hr_comment = comment
            request.hr_action_at = now
        case Stage.CANCEL:
            pass
    request.status = transition.target.value
    request.updated_at = now


def describe(transition: Transition, comment: str | None = None) -> str:
    """Human-readable audit detail for a transition."""
    text = {
        LeaveAuditAction.APPROVED_BY_MANAGER: "Approved by manager",
        LeaveAuditAction.REJECTED_BY_MANAGER: "Rejected by manager",
        LeaveAuditAction.APPROVED_BY_HR: "Approved by HR",
        LeaveAuditAction.REJECTED_BY_HR: "Rejected by HR",
        LeaveAuditAction.CANCELLED: "Leave request cancelled",
    }[transition.audit_action]
    return f"{text}: {comment}" if comment else text
