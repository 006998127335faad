"""
Tests for role-based access control and department scoping.
"""

import pytest
from fastapi import status
from sqlalchemy import select

from registrar.core.errors import AuthorizationError
from registrar.core.rbac import (
    AdminPrincipal, StaffPrincipal, apply_department_scope, can_access_department,
    department_scope, principal_for_user,
)
from registrar.models.request import DocumentRequest
from registrar.models.user import User
from registrar.services.request_query import RequestQueryService


def test_admin_scope_is_unrestricted_unless_filtered():
    admin = AdminPrincipal(user_id=1)

    assert department_scope(admin) is None
    assert department_scope(admin, 7) == frozenset({7})


def test_staff_scope_is_their_assignment_set():
    staff = StaffPrincipal(user_id=9, department_ids=frozenset({2, 5}))

    assert department_scope(staff) == frozenset({2, 5})
    assert department_scope(staff, 5) == frozenset({5})


def test_staff_filtering_on_foreign_department_is_denied():
    staff = StaffPrincipal(user_id=9, department_ids=frozenset({2, 5}))

    with pytest.raises(AuthorizationError, match="You do not have access to this department"):
        department_scope(staff, 7)


def test_can_access_department():
    staff = StaffPrincipal(user_id=9, department_ids=frozenset({2, 5}))

    assert can_access_department(AdminPrincipal(user_id=1), None)
    assert can_access_department(staff, 5)
    assert not can_access_department(staff, 7)
    assert not can_access_department(staff, None)


@pytest.mark.asyncio
async def test_empty_scope_matches_nothing(db_session, departments, make_request):
    await make_request(department_id=departments["College of Nursing"])
    query = apply_department_scope(select(DocumentRequest), DocumentRequest.department_id, frozenset())

    result = await db_session.execute(query)

    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_principal_reads_assignments_fresh(db_session, departments, make_user):
    nursing = departments["College of Nursing"]
    staff = await make_user("fresh_staff", department_ids=[nursing])

    principal = await principal_for_user(db_session, staff)

    assert principal == StaffPrincipal(user_id=staff.id, department_ids=frozenset({nursing}))


@pytest.mark.asyncio
async def test_unknown_role_is_denied(db_session, seeded):
    user = User(id=99, username="viewer", email="viewer@school.edu", full_name="Viewer", role="viewer",
                hashed_password="x")

    with pytest.raises(AuthorizationError):
        await principal_for_user(db_session, user)


@pytest.mark.asyncio
async def test_staff_without_departments_sees_nothing(db_session, departments, make_request, make_user):
    await make_request(department_id=departments["College of Nursing"])
    staff = await make_user("unassigned_staff")
    principal = await principal_for_user(db_session, staff)

    counts = await RequestQueryService.statistics(db_session, principal)

    assert counts.total == 0


@pytest.mark.asyncio
async def test_staff_listing_is_scoped(async_client, departments, make_request, make_user, headers_for):
    nursing = departments["College of Nursing"]
    computing = departments["College of Computer Studies"]
    own = await make_request(department_id=nursing)
    await make_request(department_id=computing)
    await make_request(department_id=None)
    staff = await make_user("nurse_staff", department_ids=[nursing])

    response = await async_client.get("/api/requests", headers=headers_for(staff))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 1
    assert [item["id"] for item in data["items"]] == [own.id]


@pytest.mark.asyncio
async def test_admin_listing_sees_every_department(async_client, admin_user, departments, make_request, headers_for):
    await make_request(department_id=departments["College of Nursing"])
    await make_request(department_id=departments["College of Computer Studies"])
    await make_request(department_id=None)

    response = await async_client.get("/api/requests", headers=headers_for(admin_user))

    assert response.json()["total"] == 3


@pytest.mark.asyncio
async def test_staff_detail_outside_scope_or_missing_is_forbidden(
    async_client, departments, make_request, make_user, headers_for
):
    other = await make_request(department_id=departments["College of Computer Studies"])
    staff = await make_user("scoped_staff", department_ids=[departments["College of Nursing"]])
    headers = headers_for(staff)

    foreign = await async_client.get(f"/api/requests/{other.id}", headers=headers)
    missing = await async_client.get("/api/requests/9999", headers=headers)

    assert foreign.status_code == status.HTTP_403_FORBIDDEN
    assert missing.status_code == status.HTTP_403_FORBIDDEN
    assert foreign.json() == missing.json()


@pytest.mark.asyncio
async def test_admin_missing_request_is_not_found(async_client, admin_user, headers_for):
    response = await async_client.get("/api/requests/9999", headers=headers_for(admin_user))

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "Not found"


@pytest.mark.asyncio
async def test_staff_report_for_foreign_department_is_forbidden(
    async_client, departments, make_user, headers_for
):
    """Staff assigned to departments 2 and 5 cannot report on department 7."""
    staff = await make_user("report_staff", department_ids=[2, 5])

    response = await async_client.get(
        "/api/reports/requests",
        params={"start_date": "2024-01-01", "end_date": "2024-12-31", "department_id": 7},
        headers=headers_for(staff),
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {
        "error": "Access denied",
        "message": "You do not have access to this department",
    }


@pytest.mark.asyncio
async def test_staff_cannot_update_foreign_request(
    async_client, departments, make_request, make_user, headers_for
):
    other = await make_request(department_id=departments["College of Computer Studies"])
    staff = await make_user("nosy_staff", department_ids=[departments["College of Nursing"]])

    response = await async_client.patch(
        f"/api/requests/{other.id}/status", json={"status": "PROCESSING"}, headers=headers_for(staff)
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
async def test_reassignment_applies_without_new_token(
    async_client, admin_user, departments, make_request, make_user, headers_for
):
    nursing = departments["College of Nursing"]
    request = await make_request(department_id=nursing)
    staff = await make_user("moving_staff", department_ids=[departments["College of Education"]])
    headers = headers_for(staff)

    before = await async_client.get(f"/api/requests/{request.id}", headers=headers)
    await async_client.put(
        f"/api/admin/staff/{staff.id}/departments",
        json={"department_ids": [nursing]},
        headers=headers_for(admin_user),
    )
    after = await async_client.get(f"/api/requests/{request.id}", headers=headers)

    assert before.status_code == status.HTTP_403_FORBIDDEN
    assert after.status_code == status.HTTP_200_OK


@pytest.mark.asyncio
async def test_missing_token_is_unauthorized(async_client):
    response = await async_client.get("/api/requests")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "Authentication failed"


@pytest.mark.asyncio
async def test_staff_cannot_use_admin_endpoints(async_client, departments, make_user, headers_for):
    staff = await make_user("plain_staff", department_ids=[departments["College of Nursing"]])

    response = await async_client.post(
        "/api/departments", json={"name": "College of Law"}, headers=headers_for(staff)
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
