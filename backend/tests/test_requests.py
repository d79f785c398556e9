"""Tests for the leave request lifecycle: create, two-stage approval, rejection,
cancellation, owner edits, balance re-checks at HR approval, audit and notifications.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import func, select
from sqlmodel import col

from leaveflow.config import get_settings
from leaveflow.models.audit import LeaveAudit
from leaveflow.models.balance import LeaveBalance
from leaveflow.models.enums import LedgerEntryType
from leaveflow.models.ledger import LeaveLedgerEntry
from leaveflow.models.request import LeaveRequest
from leaveflow.services.employee import EmployeeInfo, InMemoryEmployeeService, set_employee_service
from leaveflow.services.notification import NotificationEvent, set_notification_sink

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

EMPLOYEE_ID = uuid.uuid4()
OTHER_EMPLOYEE_ID = uuid.uuid4()
MANAGER_ID = uuid.uuid4()
HR_ID = uuid.uuid4()
SERVICE_ID = uuid.uuid4()
YEAR = 2025

# 2025-03-03 is a Monday.
MON, WED, FRI = "2025-03-03", "2025-03-05", "2025-03-07"
NEXT_MON, NEXT_WED = "2025-03-10", "2025-03-12"

REQUESTS_URL = "/leave-requests"


def _headers(user_id: uuid.UUID, role: str = "employee") -> dict[str, str]:
    return {"X-User-Id": str(user_id), "X-Role": role}


EMPLOYEE = _headers(EMPLOYEE_ID)
OTHER_EMPLOYEE = _headers(OTHER_EMPLOYEE_ID)
MANAGER = _headers(MANAGER_ID, "manager")
HR = _headers(HR_ID, "hr")
SERVICE = _headers(SERVICE_ID, "service")
YEAR_PARAMS = {"year": YEAR}


# ---------------------------------------------------------------------------
# Fixtures & helpers
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _seed_directory(directory: InMemoryEmployeeService) -> None:
    directory.seed(
        EmployeeInfo(
            id=EMPLOYEE_ID, first_name="Erin", last_name="Park", email="erin@example.com", manager_id=MANAGER_ID
        )
    )
    directory.seed(EmployeeInfo(id=OTHER_EMPLOYEE_ID, first_name="Omar", last_name="Diaz", email="omar@example.com"))
    directory.seed(
        EmployeeInfo(id=MANAGER_ID, first_name="Mia", last_name="Lee", email="mia@example.com", role="manager")
    )
    directory.seed(EmployeeInfo(id=HR_ID, first_name="Hal", last_name="Ng", email="hal@example.com", role="hr"))


async def _setup_balance(
    client: AsyncClient,
    session: AsyncSession,
    allocated: float = 20,
    used: float = 0,
    employee_id: uuid.UUID = EMPLOYEE_ID,
) -> str:
    """Create the Annual leave type, initialize a balance and return the type ID."""
    resp = await client.post("/leave-types", json={"name": "Annual"}, headers=HR)
    assert resp.status_code == 201
    leave_type_id: str = resp.json()["id"]

    resp = await client.post(
        "/leave-balances/initialize",
        json={"employee_id": str(employee_id), "default_allocation": allocated},
        headers=HR,
        params=YEAR_PARAMS,
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    if used:
        balance = await _balance(session, employee_id)
        balance.used = used
        await session.commit()
    return leave_type_id


async def _balance(session: AsyncSession, employee_id: uuid.UUID = EMPLOYEE_ID) -> LeaveBalance:
    result = await session.execute(
        select(LeaveBalance).where(col(LeaveBalance.employee_id) == employee_id, col(LeaveBalance.year) == YEAR)
    )
    return result.scalar_one()


async def _create(
    client: AsyncClient,
    leave_type_id: str,
    start: str = MON,
    end: str = WED,
    headers: dict[str, str] = EMPLOYEE,
    **extra: Any,
) -> Any:
    body = {
        "employee_id": str(EMPLOYEE_ID),
        "leave_type_id": leave_type_id,
        "start_date": start,
        "end_date": end,
        **extra,
    }
    return await client.post(REQUESTS_URL, json=body, headers=headers, params=YEAR_PARAMS)


async def _create_ok(client: AsyncClient, leave_type_id: str, start: str = MON, end: str = WED) -> str:
    resp = await _create(client, leave_type_id, start, end)
    assert resp.status_code == 201, resp.text
    request_id: str = resp.json()["id"]
    return request_id


async def _act(
    client: AsyncClient,
    request_id: str,
    action: str,
    headers: dict[str, str],
    comment: str | None = None,
) -> Any:
    body = {"comment": comment} if comment is not None else None
    return await client.post(f"{REQUESTS_URL}/{request_id}/{action}", json=body, headers=headers, params=YEAR_PARAMS)


async def _ledger_debits(session: AsyncSession) -> list[LeaveLedgerEntry]:
    result = await session.execute(
        select(LeaveLedgerEntry).where(col(LeaveLedgerEntry.entry_type) == LedgerEntryType.DEBIT.value)
    )
    return list(result.scalars().all())


async def _audit_actions(session: AsyncSession, request_id: str) -> list[str]:
    result = await session.execute(
        select(LeaveAudit)
        .where(col(LeaveAudit.leave_request_id) == uuid.UUID(request_id))
        .order_by(col(LeaveAudit.timestamp))
    )
    return [entry.action for entry in result.scalars().all()]


async def _request_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count()).select_from(LeaveRequest))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def test_create_request_is_pending_and_not_debited(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session, allocated=20, used=5)

    resp = await _create(async_client, leave_type_id, reason="Trip")

    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "pending"
    assert data["reason"] == "Trip"
    assert data["batch_id"] is None
    assert data["manager_id"] is None
    balance = await _balance(db_session)
    assert balance.used == 5
    assert await _audit_actions(db_session, data["id"]) == ["created"]


async def test_create_reports_pending_days_on_balance(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    await _create_ok(async_client, leave_type_id)

    resp = await async_client.get("/leave-balances", headers=EMPLOYEE, params=YEAR_PARAMS)

    item = resp.json()["items"][0]
    assert item["used"] == 0
    assert item["remaining"] == 20
    assert item["pending_days"] == 3


async def test_create_insufficient_balance(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session, allocated=2)

    resp = await _create(async_client, leave_type_id)

    assert resp.status_code == 400
    assert resp.json()["code"] == "INSUFFICIENT_BALANCE"
    assert "Available: 2, Requested: 3" in resp.json()["detail"]
    assert await _request_count(db_session) == 0


async def test_create_half_day(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session, allocated=0.5)

    resp = await _create(async_client, leave_type_id, MON, MON, half_day=True)

    assert resp.status_code == 201
    assert resp.json()["half_day"] is True


async def test_create_start_after_end(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)

    resp = await _create(async_client, leave_type_id, WED, MON)

    assert resp.status_code == 400
    assert resp.json()["code"] == "BAD_INPUT"


async def test_employee_cannot_create_for_someone_else(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)

    resp = await _create(async_client, leave_type_id, headers=OTHER_EMPLOYEE)

    assert resp.status_code == 403
    assert resp.json()["code"] == "FORBIDDEN"


async def test_service_may_create_on_behalf(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)

    resp = await _create(async_client, leave_type_id, headers=SERVICE)

    assert resp.status_code == 201
    assert resp.json()["employee_id"] == str(EMPLOYEE_ID)


async def test_create_unknown_leave_type(async_client: AsyncClient, db_session: AsyncSession) -> None:
    await _setup_balance(async_client, db_session)

    resp = await _create(async_client, str(uuid.uuid4()))

    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


async def test_create_unknown_employee(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    stranger = uuid.uuid4()

    resp = await async_client.post(
        REQUESTS_URL,
        json={"employee_id": str(stranger), "leave_type_id": leave_type_id, "start_date": MON, "end_date": WED},
        headers=HR,
        params=YEAR_PARAMS,
    )

    assert resp.status_code == 404


async def test_create_without_balance_for_year(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)

    resp = await async_client.post(
        REQUESTS_URL,
        json={"employee_id": str(EMPLOYEE_ID), "leave_type_id": leave_type_id, "start_date": MON, "end_date": WED},
        headers=EMPLOYEE,
        params={"year": 2030},
    )

    assert resp.status_code == 404


async def test_create_missing_identity_headers(async_client: AsyncClient) -> None:
    resp = await async_client.post(REQUESTS_URL, json={})
    assert resp.status_code == 422
    assert resp.json()["code"] == "BAD_INPUT"


# ---------------------------------------------------------------------------
# Two-stage approval
# ---------------------------------------------------------------------------


async def test_full_approval_debits_once_at_hr(async_client: AsyncClient, db_session: AsyncSession) -> None:
    """allocated=20, used=5; a Mon-Wed request ends with used=8 after HR approval."""
    leave_type_id = await _setup_balance(async_client, db_session, allocated=20, used=5)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await _act(async_client, request_id, "approve", MANAGER, "fine by me")
    assert resp.status_code == 200
    assert resp.json()["status"] == "manager_approved"
    assert resp.json()["manager_id"] == str(MANAGER_ID)
    assert resp.json()["manager_comment"] == "fine by me"
    assert (await _balance(db_session)).used == 5

    resp = await _act(async_client, request_id, "approve", HR)
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "hr_approved"
    assert data["hr_id"] == str(HR_ID)
    assert data["hr_action_at"] is not None

    balance = await _balance(db_session)
    assert balance.used == 8
    assert balance.used <= balance.allocated

    actions = await _audit_actions(db_session, request_id)
    assert actions == ["created", "approved_by_manager", "approved_by_hr"]

    debits = await _ledger_debits(db_session)
    assert len(debits) == 1
    assert debits[0].amount_days == -3
    assert debits[0].source_id == request_id


async def test_manager_rejection(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await _act(async_client, request_id, "reject", MANAGER, "  release week  ")

    assert resp.status_code == 200
    assert resp.json()["status"] == "manager_rejected"
    assert resp.json()["manager_comment"] == "release week"
    assert (await _balance(db_session)).used == 0
    assert await _audit_actions(db_session, request_id) == ["created", "rejected_by_manager"]


async def test_hr_rejection(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    await _act(async_client, request_id, "approve", MANAGER)

    resp = await _act(async_client, request_id, "hr-reject", HR, "headcount")

    assert resp.status_code == 200
    assert resp.json()["status"] == "hr_rejected"
    assert resp.json()["hr_comment"] == "headcount"
    assert await _ledger_debits(db_session) == []


async def test_role_specific_and_generic_approve_are_identical(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    via_role = await _create_ok(async_client, leave_type_id, MON, WED)
    via_generic = await _create_ok(async_client, leave_type_id, NEXT_MON, NEXT_WED)

    role_resp = await _act(async_client, via_role, "manager-approve", MANAGER, "ok")
    generic_resp = await _act(async_client, via_generic, "approve", MANAGER, "ok")

    assert role_resp.status_code == generic_resp.status_code == 200
    role_data, generic_data = role_resp.json(), generic_resp.json()
    for field in ("status", "manager_id", "manager_comment", "hr_id", "hr_comment"):
        assert role_data[field] == generic_data[field]
    assert await _audit_actions(db_session, via_role) == await _audit_actions(db_session, via_generic)
    assert (await _balance(db_session)).used == 0

    result = await db_session.execute(
        select(LeaveAudit.details).where(col(LeaveAudit.action) == "approved_by_manager")
    )
    assert set(result.scalars().all()) == {"Approved by manager: ok"}


async def test_role_specific_and_generic_hr_approve_debit_identically(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    first = await _create_ok(async_client, leave_type_id, MON, WED)
    second = await _create_ok(async_client, leave_type_id, NEXT_MON, NEXT_WED)
    for request_id in (first, second):
        await _act(async_client, request_id, "approve", MANAGER)

    assert (await _act(async_client, first, "hr-approve", HR)).status_code == 200
    assert (await _act(async_client, second, "approve", HR)).status_code == 200

    debits = await _ledger_debits(db_session)
    assert sorted(d.amount_days for d in debits) == [-3, -3]
    assert (await _balance(db_session)).used == 6


@pytest.mark.parametrize(
    ("action", "headers"),
    [
        ("manager-approve", HR),
        ("manager-reject", HR),
        ("hr-approve", MANAGER),
        ("hr-reject", MANAGER),
        ("approve", EMPLOYEE),
        ("approve", SERVICE),
    ],
)
async def test_role_specific_endpoints_require_their_role(
    async_client: AsyncClient, db_session: AsyncSession, action: str, headers: dict[str, str]
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await _act(async_client, request_id, action, headers, "because")

    assert resp.status_code == 403


async def test_hr_cannot_skip_manager_stage(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await _act(async_client, request_id, "approve", HR)

    assert resp.status_code == 409
    assert resp.json()["code"] == "INVALID_TRANSITION"
    assert await _ledger_debits(db_session) == []


async def test_manager_cannot_act_twice(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    assert (await _act(async_client, request_id, "approve", MANAGER)).status_code == 200

    resp = await _act(async_client, request_id, "approve", MANAGER)

    assert resp.status_code == 409


async def test_hr_approval_is_not_repeatable(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    await _act(async_client, request_id, "approve", MANAGER)
    assert (await _act(async_client, request_id, "approve", HR)).status_code == 200

    resp = await _act(async_client, request_id, "approve", HR)

    assert resp.status_code == 409
    assert len(await _ledger_debits(db_session)) == 1
    assert (await _balance(db_session)).used == 3


@pytest.mark.parametrize("comment", [None, "", "   "])
@pytest.mark.parametrize(
    ("action", "headers", "advance"),
    [
        ("reject", MANAGER, False),
        ("reject", HR, False),
        ("reject", HR, True),
        ("reject", EMPLOYEE, False),
        ("manager-reject", MANAGER, False),
        ("manager-reject", HR, True),
        ("hr-reject", HR, True),
        ("hr-reject", EMPLOYEE, False),
    ],
)
async def test_blank_rejection_comment_is_bad_input(
    async_client: AsyncClient,
    db_session: AsyncSession,
    comment: str | None,
    action: str,
    headers: dict[str, str],
    advance: bool,
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    if advance:
        await _act(async_client, request_id, "approve", MANAGER)

    resp = await _act(async_client, request_id, action, headers, comment)

    assert resp.status_code == 400
    assert resp.json()["code"] == "BAD_INPUT"


async def test_blank_rejection_comment_on_terminal_request(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    await _act(async_client, request_id, "cancel", EMPLOYEE)

    resp = await _act(async_client, request_id, "reject", MANAGER, " ")

    assert resp.status_code == 400


async def test_blank_rejection_comment_on_unknown_request(async_client: AsyncClient) -> None:
    resp = await _act(async_client, str(uuid.uuid4()), "reject", MANAGER, "")
    assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Balance re-check at HR approval
# ---------------------------------------------------------------------------


async def test_hr_approval_rechecks_balance(async_client: AsyncClient, db_session: AsyncSession) -> None:
    """Two requests pass the advisory create check; the second HR approval must fail."""
    leave_type_id = await _setup_balance(async_client, db_session, allocated=5)
    first = await _create_ok(async_client, leave_type_id, MON, WED)
    second = await _create_ok(async_client, leave_type_id, NEXT_MON, NEXT_WED)
    for request_id in (first, second):
        assert (await _act(async_client, request_id, "approve", MANAGER)).status_code == 200

    assert (await _act(async_client, first, "approve", HR)).status_code == 200
    resp = await _act(async_client, second, "approve", HR)

    assert resp.status_code == 400
    assert resp.json()["code"] == "INSUFFICIENT_BALANCE"
    balance = await _balance(db_session)
    assert balance.used == 3
    assert balance.used <= balance.allocated
    assert len(await _ledger_debits(db_session)) == 1

    resp = await async_client.get(f"{REQUESTS_URL}/{second}", headers=HR)
    assert resp.json()["status"] == "manager_approved"
    assert await _audit_actions(db_session, second) == ["created", "approved_by_manager"]


async def test_hr_approval_missing_balance_raises_by_default(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    await _act(async_client, request_id, "approve", MANAGER)

    resp = await async_client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=HR, params={"year": 2031})

    assert resp.status_code == 404
    resp = await async_client.get(f"{REQUESTS_URL}/{request_id}", headers=HR)
    assert resp.json()["status"] == "manager_approved"


async def test_hr_approval_missing_balance_ignored_by_policy(
    async_client: AsyncClient, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(get_settings(), "missing_balance_policy", "ignore")
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    await _act(async_client, request_id, "approve", MANAGER)

    resp = await async_client.post(f"{REQUESTS_URL}/{request_id}/approve", headers=HR, params={"year": 2031})

    assert resp.status_code == 200
    assert resp.json()["status"] == "hr_approved"
    assert await _ledger_debits(db_session) == []


# ---------------------------------------------------------------------------
# Cancel
# ---------------------------------------------------------------------------


async def test_cancel_pending_leaves_ledger_alone(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session, used=2)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await _act(async_client, request_id, "cancel", EMPLOYEE)

    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert (await _balance(db_session)).used == 2
    assert await _ledger_debits(db_session) == []
    assert await _audit_actions(db_session, request_id) == ["created", "cancelled"]


async def test_manager_can_cancel_manager_approved(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    await _act(async_client, request_id, "approve", MANAGER)

    resp = await _act(async_client, request_id, "cancel", MANAGER)

    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"


async def test_cancel_hr_approved_is_invalid(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    await _act(async_client, request_id, "approve", MANAGER)
    await _act(async_client, request_id, "approve", HR)

    resp = await _act(async_client, request_id, "cancel", EMPLOYEE)

    assert resp.status_code == 409
    assert resp.json()["code"] == "INVALID_TRANSITION"
    assert (await _balance(db_session)).used == 3


async def test_other_employee_cannot_cancel(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await _act(async_client, request_id, "cancel", OTHER_EMPLOYEE)

    assert resp.status_code == 403


async def test_cancel_unknown_request(async_client: AsyncClient) -> None:
    resp = await _act(async_client, str(uuid.uuid4()), "cancel", EMPLOYEE)
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Owner edit, read, approval queue
# ---------------------------------------------------------------------------


async def test_owner_updates_pending_request(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await async_client.patch(
        f"{REQUESTS_URL}/{request_id}", json={"reason": "Wedding", "end_date": FRI}, headers=EMPLOYEE
    )

    assert resp.status_code == 200
    assert resp.json()["reason"] == "Wedding"
    assert resp.json()["end_date"] == FRI
    assert resp.json()["status"] == "pending"
    assert await _audit_actions(db_session, request_id) == ["created", "updated"]


async def test_update_rejects_inverted_dates(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await async_client.patch(f"{REQUESTS_URL}/{request_id}", json={"start_date": FRI}, headers=EMPLOYEE)

    assert resp.status_code == 400


async def test_empty_update_writes_no_audit(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await async_client.patch(f"{REQUESTS_URL}/{request_id}", json={}, headers=EMPLOYEE)

    assert resp.status_code == 200
    assert resp.json()["end_date"] == WED
    assert await _audit_actions(db_session, request_id) == ["created"]


@pytest.mark.parametrize("headers", [OTHER_EMPLOYEE, MANAGER, HR])
async def test_only_owner_may_update(
    async_client: AsyncClient, db_session: AsyncSession, headers: dict[str, str]
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    resp = await async_client.patch(f"{REQUESTS_URL}/{request_id}", json={"reason": "x"}, headers=headers)

    assert resp.status_code == 403


async def test_update_after_manager_approval_is_forbidden(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    await _act(async_client, request_id, "approve", MANAGER)

    resp = await async_client.patch(f"{REQUESTS_URL}/{request_id}", json={"reason": "x"}, headers=EMPLOYEE)

    assert resp.status_code == 403


async def test_get_request_visibility(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    assert (await async_client.get(f"{REQUESTS_URL}/{request_id}", headers=EMPLOYEE)).status_code == 200
    assert (await async_client.get(f"{REQUESTS_URL}/{request_id}", headers=MANAGER)).status_code == 200
    assert (await async_client.get(f"{REQUESTS_URL}/{request_id}", headers=OTHER_EMPLOYEE)).status_code == 403
    assert (await async_client.get(f"{REQUESTS_URL}/{uuid.uuid4()}", headers=HR)).status_code == 404


async def test_pending_approvals_queue(async_client: AsyncClient, db_session: AsyncSession) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    waiting_manager = await _create_ok(async_client, leave_type_id, MON, WED)
    waiting_hr = await _create_ok(async_client, leave_type_id, NEXT_MON, NEXT_WED)
    await _act(async_client, waiting_hr, "approve", MANAGER)

    manager_queue = (await async_client.get(f"{REQUESTS_URL}/pending-approvals", headers=MANAGER)).json()
    hr_queue = (await async_client.get(f"{REQUESTS_URL}/pending-approvals", headers=HR)).json()

    assert [item["id"] for item in manager_queue["items"]] == [waiting_manager]
    assert [item["id"] for item in hr_queue["items"]] == [waiting_hr]
    resp = await async_client.get(f"{REQUESTS_URL}/pending-approvals", headers=EMPLOYEE)
    assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


async def test_notifications_follow_transitions(
    async_client: AsyncClient, db_session: AsyncSession, sink: Any
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    await _act(async_client, request_id, "approve", MANAGER)
    await _act(async_client, request_id, "approve", HR)

    assert sink.events == [
        NotificationEvent.SUBMITTED,
        NotificationEvent.MANAGER_APPROVED,
        NotificationEvent.HR_APPROVED,
    ]
    _, _, employee, actor = sink.sent[-1]
    assert employee.id == EMPLOYEE_ID
    assert actor.id == HR_ID


async def test_failed_rejection_sends_nothing(async_client: AsyncClient, db_session: AsyncSession, sink: Any) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)

    await _act(async_client, request_id, "reject", MANAGER, "")

    assert sink.events == [NotificationEvent.SUBMITTED]


class _BrokenSink:
    async def send(self, *args: Any, **kwargs: Any) -> None:
        msg = "mail server down"
        raise RuntimeError(msg)


async def test_notification_failure_does_not_undo_transition(
    async_client: AsyncClient, db_session: AsyncSession
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    set_notification_sink(_BrokenSink())

    request_id = await _create_ok(async_client, leave_type_id)
    resp = await _act(async_client, request_id, "approve", MANAGER)

    assert resp.status_code == 200
    resp = await async_client.get(f"{REQUESTS_URL}/{request_id}", headers=MANAGER)
    assert resp.json()["status"] == "manager_approved"


class _UnreachableDirectory(InMemoryEmployeeService):
    async def get_employee(self, employee_id: uuid.UUID) -> EmployeeInfo | None:
        msg = "directory unreachable"
        raise ConnectionError(msg)


async def test_directory_failure_after_commit_does_not_fail_transition(
    async_client: AsyncClient, db_session: AsyncSession, sink: Any
) -> None:
    leave_type_id = await _setup_balance(async_client, db_session)
    request_id = await _create_ok(async_client, leave_type_id)
    set_employee_service(_UnreachableDirectory())

    resp = await _act(async_client, request_id, "approve", MANAGER)

    assert resp.status_code == 200
    assert resp.json()["status"] == "manager_approved"
    assert sink.events == [NotificationEvent.SUBMITTED]
    resp = await async_client.get(f"{REQUESTS_URL}/{request_id}", headers=MANAGER)
    assert resp.json()["status"] == "manager_approved"
