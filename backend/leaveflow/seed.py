"""Seed script for development data.

Run with:  python -m leaveflow.seed  (against a running API on BASE_URL)
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, timedelta

import httpx

BASE_URL = "http://localhost:8000"

HR_ID = "00000000-0000-0000-0000-000000000001"
MANAGER_ID = "00000000-0000-0000-0000-000000000002"
ALICE_ID = "00000000-0000-0000-0000-000000000003"
BOB_ID = "00000000-0000-0000-0000-000000000004"


def _headers(user_id: str, role: str) -> dict[str, str]:
    return {"Content-Type": "application/json", "X-User-Id": user_id, "X-Role": role}


HR = _headers(HR_ID, "hr")
MANAGER = _headers(MANAGER_ID, "manager")

EMPLOYEES = [
    {"id": HR_ID, "first_name": "Hannah", "last_name": "Reyes", "email": "hannah.reyes@example.com", "role": "hr"},
    {
        "id": MANAGER_ID,
        "first_name": "Marco",
        "last_name": "Ortiz",
        "email": "marco.ortiz@example.com",
        "role": "manager",
    },
    {
        "id": ALICE_ID,
        "first_name": "Alice",
        "last_name": "Johnson",
        "email": "alice.johnson@example.com",
        "role": "employee",
        "manager_id": MANAGER_ID,
    },
    {
        "id": BOB_ID,
        "first_name": "Bob",
        "last_name": "Smith",
        "email": "bob.smith@example.com",
        "role": "employee",
        "manager_id": MANAGER_ID,
    },
]

LEAVE_TYPES = [
    {"name": "Annual Leave", "description": "Paid vacation", "color": "#3498db"},
    {"name": "Sick Leave", "description": "Illness or medical appointments", "color": "#e74c3c"},
    {"name": "Personal Leave", "description": "Personal matters", "color": "#9b59b6"},
]

# (employee_id, default allocation in days)
ALLOCATIONS = [(ALICE_ID, 20), (BOB_ID, 15)]


async def _safe_send(
    client: httpx.AsyncClient, method: str, url: str, json: dict, headers: dict[str, str], label: str
) -> dict | None:
    """Send a write, treating 'already exists' style 400s as a skip."""
    resp = await client.request(method, url, json=json, headers=headers)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code in (400, 409):
        print(f"  [SKIP] {label} ({resp.json().get('detail')})")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


def _next_weekday(start: date, days_ahead: int) -> date:
    candidate = start + timedelta(days=days_ahead)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return candidate


async def seed_employees(client: httpx.AsyncClient) -> None:
    print("\n--- Seeding employees ---")
    for emp in EMPLOYEES:
        body = {k: v for k, v in emp.items() if k != "id"}
        await _safe_send(
            client, "PUT", f"{BASE_URL}/employees/{emp['id']}", body, HR, f"{emp['first_name']} {emp['last_name']}"
        )


async def seed_leave_types(client: httpx.AsyncClient) -> dict[str, str]:
    """Seed leave types and return a name->id mapping."""
    print("\n--- Seeding leave types ---")
    for leave_type in LEAVE_TYPES:
        await _safe_send(client, "POST", f"{BASE_URL}/leave-types", leave_type, HR, f"Leave type: {leave_type['name']}")

    resp = await client.get(f"{BASE_URL}/leave-types", headers=HR)
    resp.raise_for_status()
    return {item["name"]: item["id"] for item in resp.json()["items"]}


async def seed_balances(client: httpx.AsyncClient) -> None:
    print("\n--- Seeding balances ---")
    for employee_id, allocation in ALLOCATIONS:
        await _safe_send(
            client,
            "POST",
            f"{BASE_URL}/leave-balances/initialize",
            {"employee_id": employee_id, "default_allocation": allocation},
            HR,
            f"Initialize {employee_id[-4:]} with {allocation} days",
        )


async def seed_requests(client: httpx.AsyncClient, leave_type_ids: dict[str, str]) -> None:
    print("\n--- Seeding requests ---")
    annual_id = leave_type_ids.get("Annual Leave")
    if annual_id is None:
        print("  [SKIP] Annual Leave not found")
        return

    # Alice: 3-day request taken through both approval stages
    start = _next_weekday(date.today(), 14)
    end = _next_weekday(start, 2)
    alice = _headers(ALICE_ID, "employee")
    created = await _safe_send(
        client,
        "POST",
        f"{BASE_URL}/leave-requests",
        {
            "employee_id": ALICE_ID,
            "leave_type_id": annual_id,
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "reason": "Family vacation",
        },
        alice,
        "Request: Alice vacation",
    )
    if created:
        req_id = created["id"]
        await _safe_send(
            client, "POST", f"{BASE_URL}/leave-requests/{req_id}/manager-approve", {"comment": "Enjoy"}, MANAGER,
            "Manager approves Alice",
        )
        await _safe_send(
            client, "POST", f"{BASE_URL}/leave-requests/{req_id}/hr-approve", {}, HR, "HR approves Alice"
        )

    # Bob: a batch of single days, left pending
    first = _next_weekday(date.today(), 21)
    await _safe_send(
        client,
        "POST",
        f"{BASE_URL}/leave-batches",
        {"leaves": [{"leave_on": _next_weekday(first, i).isoformat()} for i in range(2)]},
        _headers(BOB_ID, "employee"),
        "Batch: Bob 2 days",
    )


async def main() -> None:
    print("=" * 60)
    print("  Leaveflow - Development Seed Script")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            sys.exit(1)

        await seed_employees(client)
        leave_type_ids = await seed_leave_types(client)
        await seed_balances(client)
        await seed_requests(client, leave_type_ids)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
