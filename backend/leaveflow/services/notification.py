"""Outbound notifications for leave request transitions.

Delivery is best-effort: it happens after the transition has been committed,
and a failing sink is logged and never undoes or fails the transition.
"""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from leaveflow.models.request import LeaveRequest
    from leaveflow.services.employee import EmployeeInfo

logger = logging.getLogger(__name__)


class NotificationEvent(enum.StrEnum):
    SUBMITTED = "submitted"
    MANAGER_APPROVED = "manager_approved"
    MANAGER_REJECTED = "manager_rejected"
    HR_APPROVED = "hr_approved"
    HR_REJECTED = "hr_rejected"
    CANCELLED = "cancelled"


@runtime_checkable
class NotificationSink(Protocol):
    """Interface for whatever delivers notifications (email, chat, ...)."""

    async def send(
        self,
        event: NotificationEvent,
        request: LeaveRequest,
        employee: EmployeeInfo,
        actor: EmployeeInfo | None = None,
    ) -> None: ...


class LoggingNotificationSink:
    """Development sink that logs the messages it would have sent."""

    async def send(
        self,
        event: NotificationEvent,
        request: LeaveRequest,
        employee: EmployeeInfo,
        actor: EmployeeInfo | None = None,
    ) -> None:
        by = f" by {actor.full_name}" if actor is not None else ""
        logger.info("[NOTIFICATION] Leave request %s %s%s", request.id, event.value, by)
        for recipient, subject in _messages(event, request, employee):
            logger.info("[EMAIL] To: %s, Subject: %s", recipient, subject)


def _messages(
    event: NotificationEvent, request: LeaveRequest, employee: EmployeeInfo
) -> list[tuple[str, str]]:
    name = employee.full_name
    match event:
        case NotificationEvent.SUBMITTED:
            return [("Manager", f"New Leave Request from {name}")]
        case NotificationEvent.MANAGER_APPROVED:
            return [
                (employee.email, "Your leave request has been approved by your manager"),
                ("HR", f"Leave request from {name} needs HR approval"),
            ]
        case NotificationEvent.MANAGER_REJECTED:
            return [(employee.email, "Your leave request has been rejected by your manager")]
        case NotificationEvent.HR_APPROVED:
            messages = [(employee.email, "Your leave request has been fully approved")]
            if request.manager_id is not None:
                messages.append(("Manager", f"Leave request from {name} has been approved by HR"))
            return messages
        case NotificationEvent.HR_REJECTED:
            messages = [(employee.email, "Your leave request has been rejected by HR")]
            if request.manager_id is not None:
                messages.append(("Manager", f"Leave request from {name} has been rejected by HR"))
            return messages
        case NotificationEvent.CANCELLED:
            messages = []
            if request.manager_id is not None:
                messages.append(("Manager", f"Leave request from {name} has been cancelled"))
                messages.append(("HR", f"Leave request from {name} has been cancelled"))
            return messages


_notification_sink: NotificationSink = LoggingNotificationSink()


def get_notification_sink() -> NotificationSink:
    return _notification_sink


def set_notification_sink(sink: NotificationSink) -> None:
    """Override the sink (for testing or production wiring)."""
    global _notification_sink
    _notification_sink = sink


async def notify(
    event: NotificationEvent,
    request: LeaveRequest,
    employee: EmployeeInfo | None,
    actor: EmployeeInfo | None = None,
) -> bool:
    """Deliver one notification. Returns False when it could not be delivered."""
    if employee is None:
        logger.warning("Skipping %s notification for request %s: employee not in directory", event, request.id)
        return False
    try:
        await get_notification_sink().send(event, request, employee, actor)
    except Exception:
        logger.exception("Failed to deliver %s notification for request %s", event, request.id)
        return False
    return True
