"""HTTP surface — identity, request lifecycle, balances, holidays, directory.

Exercises the FastAPI app end to end through httpx's ASGI transport.
"""

from __future__ import annotations

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from leavedesk.common.constants import UserRole
from tests.factories import (
    _seed_department,
    _seed_employee,
    auth_headers,
    create_access_token,
)

API = "/api/v1"

EMPLOYEE = "ana@example.com"
MANAGER = "marta@example.com"
CHIEF = "jefe@example.com"
ADMIN = "admin@example.com"


async def _seed_org(db: AsyncSession) -> dict:
    """Committed directory: one department with an employee and a manager, plus chief and admin."""
    dept = await _seed_department(db)
    emp = await _seed_employee(db, email=EMPLOYEE, department_id=dept.id, display_name="Ana")
    mgr = await _seed_employee(db, email=MANAGER, role=UserRole.manager, department_id=dept.id)
    chief = await _seed_employee(db, email=CHIEF, role=UserRole.chief)
    admin = await _seed_employee(db, email=ADMIN, role=UserRole.system_admin)
    await db.commit()
    return {"dept": dept.id, "emp": emp.id, "mgr": mgr.id, "chief": chief.id, "admin": admin.id}


# ═════════════════════════════════════════════════════════════════════
# 1. System + identity
# ═════════════════════════════════════════════════════════════════════


class TestIdentity:

    async def test_health(self, client: AsyncClient):
        resp = await client.get(f"{API}/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    async def test_missing_token(self, client: AsyncClient):
        resp = await client.get(f"{API}/me")
        assert resp.status_code == 401

    async def test_invalid_and_expired_tokens(self, client: AsyncClient, db: AsyncSession):
        await _seed_org(db)

        forged = create_access_token(EMPLOYEE, secret="not-the-secret")
        resp = await client.get(f"{API}/me", headers={"Authorization": f"Bearer {forged}"})
        assert resp.status_code == 401

        expired = create_access_token(EMPLOYEE, expired=True)
        resp = await client.get(f"{API}/me", headers={"Authorization": f"Bearer {expired}"})
        assert resp.status_code == 401

    async def test_foreign_domain_forbidden(self, client: AsyncClient):
        resp = await client.get(f"{API}/me", headers=auth_headers("someone@other.org"))
        assert resp.status_code == 403
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert resp.json()["code"] == "forbidden"

    async def test_unknown_user_forbidden(self, client: AsyncClient, db: AsyncSession):
        await _seed_org(db)
        resp = await client.get(f"{API}/me", headers=auth_headers("ghost@example.com"))
        assert resp.status_code == 403

    async def test_me(self, client: AsyncClient, db: AsyncSession):
        ids = await _seed_org(db)

        resp = await client.get(f"{API}/me", headers=auth_headers("Ana@Example.com"))

        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == str(ids["emp"])
        assert body["role"] == "employee"
        assert body["display_name"] == "Ana"


# ═════════════════════════════════════════════════════════════════════
# 2. Requests and balances
# ═════════════════════════════════════════════════════════════════════


class TestRequestFlow:

    async def test_submit_approve_edit_reapprove(self, client: AsyncClient, db: AsyncSession):
        ids = await _seed_org(db)

        resp = await client.post(
            f"{API}/requests",
            json={"start_date": "2025-03-03", "end_date": "2025-03-07", "note": "Holiday"},
            headers=auth_headers(EMPLOYEE),
        )
        assert resp.status_code == 201
        request_id = resp.json()["id"]
        assert resp.json()["status"] == "pending"

        resp = await client.get(f"{API}/requests", headers=auth_headers(EMPLOYEE))
        assert resp.status_code == 200
        assert resp.json()[0]["estimated_days"] == 5

        resp = await client.post(
            f"{API}/requests/{request_id}/approve", headers=auth_headers(MANAGER),
        )
        assert resp.status_code == 200
        assert resp.json()["consumed_days"] == 5

        resp = await client.get(f"{API}/balances/{ids['emp']}", headers=auth_headers(EMPLOYEE))
        assert resp.json()["available"] == 17

        resp = await client.patch(
            f"{API}/requests/{request_id}",
            json={"end_date": "2025-03-05"},
            headers=auth_headers(EMPLOYEE),
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "pending"
        assert resp.json()["consumed_days"] == 0

        resp = await client.get(f"{API}/balances/{ids['emp']}", headers=auth_headers(EMPLOYEE))
        assert resp.json()["available"] == 22

        resp = await client.get(
            f"{API}/requests/{request_id}/estimate", headers=auth_headers(EMPLOYEE),
        )
        assert resp.json()["estimated_days"] == 3

        resp = await client.post(
            f"{API}/requests/{request_id}/approve", headers=auth_headers(CHIEF),
        )
        assert resp.json()["consumed_days"] == 3

        resp = await client.get(f"{API}/balances/{ids['emp']}", headers=auth_headers(EMPLOYEE))
        assert resp.json()["available"] == 19

    async def test_error_codes(self, client: AsyncClient, db: AsyncSession):
        await _seed_org(db)
        headers = auth_headers(EMPLOYEE)

        resp = await client.post(
            f"{API}/requests", json={"start_date": "2025-02-30", "end_date": "2025-03-01"},
            headers=headers,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "invalid_dates"

        resp = await client.post(
            f"{API}/requests", json={"start_date": "2025-03-07", "end_date": "2025-03-03"},
            headers=headers,
        )
        assert resp.json()["code"] == "invalid_range"

        resp = await client.post(
            f"{API}/requests", json={"start_date": "2025-03-03", "end_date": "2025-03-07"},
            headers=headers,
        )
        request_id = resp.json()["id"]
        resp = await client.post(
            f"{API}/requests", json={"start_date": "2025-03-07", "end_date": "2025-03-07"},
            headers=headers,
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "overlap"

        resp = await client.post(f"{API}/requests/{request_id}/approve", headers=headers)
        assert resp.status_code == 403

        resp = await client.post(
            f"{API}/requests/{request_id}/reject", headers=auth_headers(MANAGER),
        )
        assert resp.json()["status"] == "rejected"

        resp = await client.post(
            f"{API}/requests/{request_id}/approve", headers=auth_headers(MANAGER),
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "invalid_state"

        resp = await client.post(
            f"{API}/requests/00000000-0000-0000-0000-000000000000/approve",
            headers=auth_headers(MANAGER),
        )
        assert resp.status_code == 404

    async def test_failed_approval_is_rolled_back(self, client: AsyncClient, db: AsyncSession):
        """A refused approval leaves the balance untouched."""
        ids = await _seed_org(db)

        resp = await client.post(
            f"{API}/requests", json={"start_date": "2025-03-03", "end_date": "2025-03-07"},
            headers=auth_headers(EMPLOYEE),
        )
        request_id = resp.json()["id"]
        resp = await client.post(
            f"{API}/requests/{request_id}/approve", headers=auth_headers(ADMIN),
        )
        assert resp.status_code == 403

        resp = await client.get(f"{API}/balances/{ids['emp']}", headers=auth_headers(MANAGER))
        assert resp.json()["consumed"] == 0

    async def test_calendar(self, client: AsyncClient, db: AsyncSession):
        ids = await _seed_org(db)
        resp = await client.post(
            f"{API}/requests", json={"start_date": "2025-03-03", "end_date": "2025-03-07"},
            headers=auth_headers(EMPLOYEE),
        )
        request_id = resp.json()["id"]
        await client.post(f"{API}/requests/{request_id}/approve", headers=auth_headers(MANAGER))

        resp = await client.get(
            f"{API}/calendar",
            params={"start": "2025-03-01", "end": "2025-03-31", "department_ids": str(ids["dept"])},
            headers=auth_headers(CHIEF),
        )

        assert resp.status_code == 200
        items = resp.json()
        assert [item["id"] for item in items] == [request_id]
        assert items[0]["working_days"] == [1, 2, 3, 4, 5]


class TestBalanceEndpoints:

    async def test_adjust_requires_comment_for_delta(self, client: AsyncClient, db: AsyncSession):
        ids = await _seed_org(db)

        resp = await client.post(
            f"{API}/balances/{ids['emp']}/adjust",
            json={"delta_extra": 2},
            headers=auth_headers(CHIEF),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "missing_comment"

        resp = await client.post(
            f"{API}/balances/{ids['emp']}/adjust",
            json={"assigned_annual": "lots"},
            headers=auth_headers(CHIEF),
        )
        assert resp.json()["code"] == "invalid_argument"

        resp = await client.post(
            f"{API}/balances/{ids['emp']}/adjust",
            json={"delta_extra": 2, "comment": "Weekend on-call", "carried_over": 3},
            headers=auth_headers(MANAGER),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["extra"] == 2
        assert body["carried_over"] == 3
        assert body["available"] == 27
        assert body["last_adjustment"]["comment"] == "Weekend on-call"

        resp = await client.get(
            f"{API}/balances/{ids['emp']}/adjustments", headers=auth_headers(EMPLOYEE),
        )
        assert len(resp.json()) == 1
        assert resp.json()[0]["created_by"] == MANAGER

    async def test_adjust_scope(self, client: AsyncClient, db: AsyncSession):
        ids = await _seed_org(db)

        resp = await client.post(
            f"{API}/balances/{ids['chief']}/adjust",
            json={"assigned_annual": 30},
            headers=auth_headers(MANAGER),
        )
        assert resp.status_code == 403

        resp = await client.post(
            f"{API}/balances/{ids['emp']}/adjust",
            json={"assigned_annual": 30},
            headers=auth_headers(EMPLOYEE),
        )
        assert resp.status_code == 403

    async def test_employee_sees_only_own_balance(self, client: AsyncClient, db: AsyncSession):
        ids = await _seed_org(db)

        resp = await client.get(f"{API}/balances/{ids['mgr']}", headers=auth_headers(EMPLOYEE))
        assert resp.status_code == 403

        resp = await client.get(f"{API}/balances", headers=auth_headers(EMPLOYEE))
        assert [b["employee_id"] for b in resp.json()] == [str(ids["emp"])]

        resp = await client.get(f"{API}/balances", headers=auth_headers(CHIEF))
        assert len(resp.json()) == 4


# ═════════════════════════════════════════════════════════════════════
# 3. Holidays and directory
# ═════════════════════════════════════════════════════════════════════


class TestHolidayEndpoints:

    async def test_replace_and_list(self, client: AsyncClient, db: AsyncSession):
        await _seed_org(db)

        resp = await client.put(
            f"{API}/holidays",
            json={"year": 2025, "dates": ["2025-12-25", "2025-01-01", "nonsense", "2025-01-01"]},
            headers=auth_headers(ADMIN),
        )
        assert resp.status_code == 200
        assert resp.json()["count"] == 2

        resp = await client.put(
            f"{API}/holidays",
            json={"year": 2025, "dates": ["2025-05-01"]},
            headers=auth_headers(CHIEF),
        )
        assert resp.json()["count"] == 1

        resp = await client.get(
            f"{API}/holidays", params={"year": 2025}, headers=auth_headers(EMPLOYEE),
        )
        assert resp.json()["dates"] == ["2025-05-01"]

    async def test_only_configurers_replace(self, client: AsyncClient, db: AsyncSession):
        await _seed_org(db)

        resp = await client.put(
            f"{API}/holidays", json={"year": 2025, "dates": []}, headers=auth_headers(MANAGER),
        )
        assert resp.status_code == 403

    async def test_invalid_year(self, client: AsyncClient, db: AsyncSession):
        await _seed_org(db)

        resp = await client.put(
            f"{API}/holidays", json={"year": 0, "dates": []}, headers=auth_headers(CHIEF),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "invalid_year"


class TestDirectoryEndpoints:

    async def test_working_days(self, client: AsyncClient, db: AsyncSession):
        ids = await _seed_org(db)

        resp = await client.put(
            f"{API}/users/{ids['emp']}/working-days",
            json={"working_days": [3, "1", 9, 1]},
            headers=auth_headers(MANAGER),
        )
        assert resp.status_code == 200
        assert resp.json()["working_days"] == [1, 3]

        resp = await client.get(
            f"{API}/users/{ids['emp']}/working-days", headers=auth_headers(EMPLOYEE),
        )
        assert resp.json()["working_days"] == [1, 3]

        resp = await client.put(
            f"{API}/users/{ids['emp']}/working-days",
            json={"working_days": [0, 8]},
            headers=auth_headers(CHIEF),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "invalid_working_days"

        resp = await client.put(
            f"{API}/users/{ids['chief']}/working-days",
            json={"working_days": [1]},
            headers=auth_headers(MANAGER),
        )
        assert resp.status_code == 403

    async def test_users_scoped(self, client: AsyncClient, db: AsyncSession):
        await _seed_org(db)

        resp = await client.get(f"{API}/users", headers=auth_headers(MANAGER))
        assert {u["email"] for u in resp.json()} == {EMPLOYEE, MANAGER}

        resp = await client.get(f"{API}/users", headers=auth_headers(EMPLOYEE))
        assert [u["email"] for u in resp.json()] == [EMPLOYEE]

    async def test_departments(self, client: AsyncClient, db: AsyncSession):
        await _seed_org(db)

        resp = await client.post(
            f"{API}/departments", json={"name": "  "}, headers=auth_headers(ADMIN),
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "missing_name"

        resp = await client.post(
            f"{API}/departments", json={"name": "Sales"}, headers=auth_headers(EMPLOYEE),
        )
        assert resp.status_code == 403

        resp = await client.post(
            f"{API}/departments", json={"name": "Sales"}, headers=auth_headers(ADMIN),
        )
        assert resp.status_code == 201

        resp = await client.get(f"{API}/departments", headers=auth_headers(EMPLOYEE))
        assert sorted(d["name"] for d in resp.json()) == ["Engineering", "Sales"]
